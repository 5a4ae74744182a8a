"""Core PageIndex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


def _frozen_frequencies(name: str, counts: Mapping[str, int]) -> Mapping[str, int]:
    """Validate counts and return a read-only copy."""
    if not isinstance(counts, Mapping):
        raise TypeError(f"{name} must be a mapping, got {type(counts).__name__}")
    for key, value in counts.items():
        if not isinstance(key, str) or not key:
            raise ValueError(f"{name} contains an empty or non-string key: {key!r}")
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"{name}[{key!r}] must be a positive integer, got {value!r}")
    return MappingProxyType(dict(counts))


def _expect(name: str, value: Any, kind: type) -> Any:
    if isinstance(value, bool) and kind is not bool:
        raise TypeError(f"{name} must be {kind.__name__}, got bool")
    if not isinstance(value, kind):
        raise TypeError(f"{name} must be {kind.__name__}, got {type(value).__name__}")
    return value


@dataclass(slots=True)
class FetchResult:
    """Response returned by the fetcher for a single URL."""

    url: str
    status_code: int
    body: str
    redirected: bool = False
    redirect_chain: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DocumentRecord:
    """Statistics extracted from one crawled page.

    Records are never modified once built; indexing the same URL again
    produces a second record.
    """

    source_url: str
    status_code: int
    redirected: bool
    redirect_chain: Tuple[str, ...]
    tag_frequency: Mapping[str, int]
    content_tokens: Mapping[str, int]
    captured_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tag_frequency", _frozen_frequencies("tag_frequency", self.tag_frequency)
        )
        object.__setattr__(
            self, "content_tokens", _frozen_frequencies("content_tokens", self.content_tokens)
        )
        object.__setattr__(self, "redirect_chain", tuple(self.redirect_chain))

    @property
    def total_words(self) -> int:
        return sum(self.content_tokens.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourceURL": self.source_url,
            "statusCode": self.status_code,
            "redirected": self.redirected,
            "redirectChain": list(self.redirect_chain),
            "tagFrequency": dict(self.tag_frequency),
            "contentTokens": dict(self.content_tokens),
            "capturedAt": self.captured_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DocumentRecord":
        """Build a record from its persisted JSON object.

        Raises ``KeyError``, ``TypeError`` or ``ValueError`` when the object
        does not describe a valid record.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        chain = _expect("redirectChain", data.get("redirectChain", []), list)
        for hop in chain:
            _expect("redirectChain item", hop, str)
        return cls(
            source_url=_expect("sourceURL", data["sourceURL"], str),
            status_code=_expect("statusCode", data["statusCode"], int),
            redirected=_expect("redirected", data.get("redirected", False), bool),
            redirect_chain=tuple(chain),
            tag_frequency=_expect("tagFrequency", data.get("tagFrequency", {}), dict),
            content_tokens=_expect("contentTokens", data.get("contentTokens", {}), dict),
            captured_at=datetime.fromisoformat(_expect("capturedAt", data["capturedAt"], str)),
        )


@dataclass(slots=True)
class RankedDocument:
    """TF-IDF score of one corpus document for a query."""

    source_url: str
    score: float
    term_weights: Dict[str, float]
    position: int = 0
