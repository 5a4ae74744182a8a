"""TF-IDF search interface."""

from __future__ import annotations

import logging
from typing import List

from pageindex.index.ranking import rank, sort_by_score
from pageindex.index.storage import JSONCorpusStore
from pageindex.models import RankedDocument
from pageindex.utils.text import query_terms

LOGGER = logging.getLogger(__name__)


class Searcher:
    """High-level API to rank the stored corpus against a query."""

    def __init__(self, store: JSONCorpusStore) -> None:
        self.store = store

    def search(
        self,
        query: str,
        *,
        top_k: int | None = None,
        by_score: bool = False,
    ) -> List[RankedDocument]:
        terms = query_terms(query)
        if not terms:
            return []

        corpus = self.store.load_all()
        LOGGER.debug("Ranking %d documents for terms %s", len(corpus), terms)
        results = rank(corpus, terms)
        if by_score:
            results = sort_by_score(results)
        if top_k is not None:
            results = results[: max(top_k, 0)]
        return results
