"""HTTP fetching of pages to index.

Uses a shared ``requests.Session`` so connection pooling and headers carry
across the URLs of one crawl.
"""

from __future__ import annotations

import logging

import requests

from pageindex.config import DEFAULT_USER_AGENT
from pageindex.models import FetchResult

LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a URL cannot be fetched or answers with a non-200 status."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class Fetcher:
    """Fetch raw page markup, following redirects."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def fetch(self, url: str) -> FetchResult:
        LOGGER.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise FetchError(url, f"request failed: {exc}") from exc

        chain = tuple(hop.url for hop in response.history)
        if response.status_code != requests.codes.ok:
            raise FetchError(
                url,
                f"HTTP status {response.status_code}",
                status_code=response.status_code,
            )

        return FetchResult(
            url=response.url or url,
            status_code=response.status_code,
            body=response.text,
            redirected=bool(chain),
            redirect_chain=chain,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
