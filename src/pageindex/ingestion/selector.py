"""CSS selector based text extraction."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from bs4 import BeautifulSoup

LOGGER = logging.getLogger(__name__)

_BR_TAG = re.compile(r"<br\s*/?>", re.IGNORECASE)


def select_text(markup: str, selectors: Sequence[str]) -> str:
    """Concatenate the text of every element matched by the selectors.

    ``<br>`` tags become newlines first, otherwise the words around them
    would be glued together by ``get_text``.
    """
    if not selectors or not markup:
        return ""

    soup = BeautifulSoup(_BR_TAG.sub("\n", markup), "html.parser")
    parts: list[str] = []
    for selector in selectors:
        matches = soup.select(selector)
        LOGGER.debug("Selector %r matched %d elements", selector, len(matches))
        parts.extend(element.get_text() for element in matches)
    return "".join(parts)
