"""Page indexing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Protocol, Sequence

from pageindex.index.storage import JSONCorpusStore, StoreError
from pageindex.ingestion.fetcher import FetchError
from pageindex.ingestion.selector import select_text
from pageindex.models import DocumentRecord, FetchResult
from pageindex.utils.text import tag_frequency, token_frequency

LOGGER = logging.getLogger(__name__)


class PageFetcher(Protocol):
    def fetch(self, url: str) -> FetchResult: ...


class IndexingError(Exception):
    """A URL could not be indexed and the run was aborted."""

    def __init__(self, url: str, cause: Exception) -> None:
        super().__init__(f"Failed to index {url}: {cause}")
        self.url = url
        self.cause = cause


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    failed: int = 0
    processed_urls: list[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)

    def record_success(self, url: str) -> None:
        self.indexed += 1
        self.processed_urls.append(url)

    def record_failure(self, url: str, error: Exception) -> None:
        self.failed += 1
        self.failures[url] = str(error)
        self.processed_urls.append(url)


def build_record(page: FetchResult, selectors: Sequence[str] = ()) -> DocumentRecord:
    """Extract tag and token statistics from a fetched page.

    Tokens come from the selected text when the selectors match something,
    otherwise from the whole markup.
    """
    selected = select_text(page.body, selectors)
    tokens = token_frequency(selected) if selected else token_frequency(page.body)
    return DocumentRecord(
        source_url=page.url,
        status_code=page.status_code,
        redirected=page.redirected,
        redirect_chain=page.redirect_chain,
        tag_frequency=tag_frequency(page.body),
        content_tokens=tokens,
    )


class Indexer:
    """Fetches URLs one at a time and appends their statistics to the store."""

    def __init__(
        self,
        fetcher: PageFetcher,
        store: JSONCorpusStore,
        *,
        selectors: Sequence[str] = (),
        stop_on_error: bool = True,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.selectors = tuple(selectors)
        self.stop_on_error = stop_on_error

    def index(self, urls: Iterable[str]) -> IndexStats:
        """Index URLs in order.

        By default the first fetch failure aborts the run with
        ``IndexingError``; records already appended stay in the store.
        Store errors always abort.
        """
        stats = IndexStats()
        for url in urls:
            LOGGER.info("Processing: %s", url)
            try:
                page = self.fetcher.fetch(url)
            except FetchError as exc:
                if self.stop_on_error:
                    raise IndexingError(url, exc) from exc
                LOGGER.error("Failed to fetch %s: %s", url, exc)
                stats.record_failure(url, exc)
                continue

            record = build_record(page, self.selectors)
            try:
                self.store.append(record)
            except StoreError as exc:
                raise IndexingError(url, exc) from exc

            LOGGER.debug(
                "Indexed %s: %d tags, %d distinct tokens",
                record.source_url,
                len(record.tag_frequency),
                len(record.content_tokens),
            )
            stats.record_success(url)

        if not stats.processed_urls:
            LOGGER.warning("No URLs to index")
        return stats
