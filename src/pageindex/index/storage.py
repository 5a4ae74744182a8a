"""JSON file corpus store."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from pageindex.models import DocumentRecord

LOGGER = logging.getLogger(__name__)

_PATH_LOCKS: Dict[Path, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    """Return the process-wide lock serializing writers of one corpus file."""
    key = path.resolve()
    with _PATH_LOCKS_GUARD:
        lock = _PATH_LOCKS.get(key)
        if lock is None:
            lock = _PATH_LOCKS[key] = threading.Lock()
        return lock


class StoreError(Exception):
    """Base error for corpus persistence problems."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ReadFailure(StoreError):
    """The persisted corpus cannot be decoded."""


class WriteFailure(StoreError):
    """The corpus could not be written back to disk."""


@dataclass(slots=True)
class CorpusStats:
    document_count: int = 0
    unique_urls: int = 0
    total_tokens: int = 0


class JSONCorpusStore:
    """Append-only collection of document records kept in one JSON array.

    Every append reads the whole corpus and rewrites it. The new content is
    written to a sibling temporary file and moved over the target, so the
    file on disk is always a complete corpus. Appends to the same file are
    serialized within the process; separate processes are not coordinated.
    """

    def __init__(self, path: Path, *, dedupe: bool = False) -> None:
        self.path = Path(path)
        self.dedupe = dedupe

    def exists(self) -> bool:
        return self.path.exists()

    def load_all(self) -> List[DocumentRecord]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadFailure(self.path, f"cannot read corpus: {exc}") from exc

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ReadFailure(self.path, f"invalid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise ReadFailure(self.path, "corpus must be a JSON array of records")

        records: List[DocumentRecord] = []
        for position, item in enumerate(data):
            try:
                records.append(DocumentRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                raise ReadFailure(self.path, f"invalid record at index {position}: {exc}") from exc
        return records

    def append(self, record: DocumentRecord) -> None:
        # Load, append and rewrite must not interleave with another writer
        # of the same file, or its records are lost.
        with _lock_for(self.path):
            records = self.load_all()
            if self.dedupe:
                kept = [item for item in records if item.source_url != record.source_url]
                if len(kept) != len(records):
                    LOGGER.debug(
                        "Replacing %d earlier record(s) for %s",
                        len(records) - len(kept),
                        record.source_url,
                    )
                records = kept
            records.append(record)
            self._write(records)

    def _write(self, records: List[DocumentRecord]) -> None:
        payload = [record.to_dict() for record in records]
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise WriteFailure(self.path, f"cannot write corpus: {exc}") from exc
        LOGGER.debug("Wrote %d records to %s", len(records), self.path)

    def stats(self) -> CorpusStats:
        records = self.load_all()
        return CorpusStats(
            document_count=len(records),
            unique_urls=len({record.source_url for record in records}),
            total_tokens=sum(record.total_words for record in records),
        )

    def list_documents(self) -> List[Dict[str, Any]]:
        """Summary rows for every stored record, in corpus order."""
        return [
            {
                "sourceURL": record.source_url,
                "statusCode": record.status_code,
                "capturedAt": record.captured_at.isoformat(),
                "totalWords": record.total_words,
            }
            for record in self.load_all()
        ]
