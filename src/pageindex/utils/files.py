"""Utility helpers for working with URL list files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, List
from urllib.parse import urlparse

LOGGER = logging.getLogger(__name__)


def is_valid_url(candidate: str) -> bool:
    """Return True when the string parses with both a scheme and a host."""
    try:
        parsed = urlparse(candidate)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def iter_urls(lines: Iterable[str]) -> Iterator[str]:
    """Yield the valid URLs among lines, skipping blanks and invalid entries."""
    for line in lines:
        url = line.strip()
        if not url:
            continue
        if is_valid_url(url):
            yield url
        else:
            LOGGER.debug("Skipping invalid URL %r", url)


def load_urls(path: Path) -> List[str]:
    """Read a file with one URL per line."""
    with Path(path).open("r", encoding="utf-8") as handle:
        return list(iter_urls(handle))
