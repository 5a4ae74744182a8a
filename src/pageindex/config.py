"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

DEFAULT_INDEX_PATH = Path("data/index.json")
DEFAULT_USER_AGENT = "PageIndex/0.1"


@dataclass(slots=True)
class AppConfig:
    index_path: Path | None = None
    selectors: Tuple[str, ...] = ()
    timeout: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT
    dedupe: bool = False
    stop_on_error: bool = True

    def __post_init__(self) -> None:
        if self.index_path is None:
            self.index_path = DEFAULT_INDEX_PATH
        self.selectors = tuple(self.selectors)

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        if self.index_path is None:
            self.index_path = DEFAULT_INDEX_PATH
        if Path(self.index_path).is_absolute() or base_dir is None:
            return Path(self.index_path)
        return base_dir / self.index_path
