"""Shared fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict

import pytest

from pageindex.models import DocumentRecord


@pytest.fixture
def make_record() -> Callable[..., DocumentRecord]:
    """Factory for document records with sensible defaults."""

    def _make(url: str = "https://example.com/", tokens: Dict[str, int] | None = None, **extra):
        values = dict(
            source_url=url,
            status_code=200,
            redirected=False,
            redirect_chain=(),
            tag_frequency={"p": 1},
            content_tokens={"word": 1} if tokens is None else tokens,
            captured_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        values.update(extra)
        return DocumentRecord(**values)

    return _make
