"""Text helpers: tag counting and word tokenization."""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List

_TAG_PATTERN = re.compile(r"<(\w*)[^>]*>", re.ASCII)
_NON_WORD = re.compile(r"[^\w\n]", re.ASCII)
_DIGIT = re.compile(r"\d", re.ASCII)


def tag_frequency(markup: str) -> Dict[str, int]:
    """Count opening tags in raw markup.

    Closing tags and malformed tags such as ``< >`` capture an empty name
    and are ignored. Tag names keep the case they were written in.
    """
    counts: Counter[str] = Counter()
    for name in _TAG_PATTERN.findall(markup):
        if name:
            counts[name] += 1
    return dict(counts)


def token_frequency(text: str) -> Dict[str, int]:
    """Count lowercase word tokens in text.

    Punctuation becomes a separator, and tokens containing a digit are
    dropped as noise (version numbers, ids).
    """
    # casefold so "straße" and "STRASSE" give the same tokens.
    cleaned = _NON_WORD.sub(" ", text.casefold())
    counts: Counter[str] = Counter()
    for word in cleaned.split():
        if _DIGIT.search(word):
            continue
        counts[word] += 1
    return dict(counts)


def query_terms(query: str) -> List[str]:
    """Split a free-text query into unique lowercase terms, in order."""
    return list(dict.fromkeys(term.casefold() for term in query.split()))
