"""TF-IDF scoring over the stored corpus."""

from __future__ import annotations

import math
from typing import Dict, List, Sequence

from pageindex.models import DocumentRecord, RankedDocument


def document_frequency(corpus: Sequence[DocumentRecord], terms: Sequence[str]) -> Dict[str, int]:
    """Number of documents containing each term at least once."""
    df = {term: 0 for term in terms}
    for record in corpus:
        for term in df:
            if term in record.content_tokens:
                df[term] += 1
    return df


def inverse_document_frequency(
    corpus: Sequence[DocumentRecord],
    terms: Sequence[str],
    df: Dict[str, int],
) -> Dict[str, float]:
    """``ln(N / df)`` per term.

    A term found in no document gets weight 0.0 instead of an infinite value.
    """
    total = len(corpus)
    idf: Dict[str, float] = {}
    for term in terms:
        count = df.get(term, 0)
        idf[term] = math.log(total / count) if count > 0 else 0.0
    return idf


def rank(corpus: Sequence[DocumentRecord], terms: Sequence[str]) -> List[RankedDocument]:
    """Score every document for the query terms, keeping corpus order."""
    df = document_frequency(corpus, terms)
    idf = inverse_document_frequency(corpus, terms, df)

    results: List[RankedDocument] = []
    for position, record in enumerate(corpus):
        total_words = record.total_words
        weights: Dict[str, float] = {}
        score = 0.0
        for term in terms:
            # Documents without tokens contribute nothing.
            tf = record.content_tokens.get(term, 0) / total_words if total_words else 0.0
            weights[term] = tf
            score += tf * idf[term]
        results.append(
            RankedDocument(
                source_url=record.source_url,
                score=score,
                term_weights=weights,
                position=position,
            )
        )
    return results


def sort_by_score(ranked: Sequence[RankedDocument]) -> List[RankedDocument]:
    """Highest score first; equal scores keep their corpus order."""
    return sorted(ranked, key=lambda item: (-item.score, item.position))
