"""Tests for JSONCorpusStore."""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from pageindex.index.storage import (
    JSONCorpusStore,
    ReadFailure,
    StoreError,
    WriteFailure,
)


@pytest.fixture
def store(tmp_path: Path) -> JSONCorpusStore:
    return JSONCorpusStore(tmp_path / "index.json")


class TestLoadAll:
    """Test reading the corpus."""

    def test_missing_file_is_empty_corpus(self, store: JSONCorpusStore) -> None:
        """Should return an empty list when the file does not exist."""
        assert not store.exists()
        assert store.load_all() == []

    def test_zero_length_file_is_empty_corpus(self, store: JSONCorpusStore) -> None:
        """Should treat an empty file as an empty corpus."""
        store.path.write_text("", encoding="utf-8")

        assert store.load_all() == []

    def test_whitespace_file_is_empty_corpus(self, store: JSONCorpusStore) -> None:
        """Should treat a blank file as an empty corpus."""
        store.path.write_text("  \n", encoding="utf-8")

        assert store.load_all() == []

    def test_invalid_json(self, store: JSONCorpusStore) -> None:
        """Should raise ReadFailure for undecodable content."""
        store.path.write_text("[{not json", encoding="utf-8")

        with pytest.raises(ReadFailure) as excinfo:
            store.load_all()

        assert isinstance(excinfo.value, StoreError)
        assert excinfo.value.path == store.path
        assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)

    def test_top_level_must_be_array(self, store: JSONCorpusStore) -> None:
        """Should raise ReadFailure for a JSON object."""
        store.path.write_text('{"sourceURL": "x"}', encoding="utf-8")

        with pytest.raises(ReadFailure):
            store.load_all()

    def test_invalid_record(self, store: JSONCorpusStore) -> None:
        """Should raise ReadFailure naming the bad record."""
        store.path.write_text(json.dumps([{"statusCode": 200}]), encoding="utf-8")

        with pytest.raises(ReadFailure, match="index 0"):
            store.load_all()

    @pytest.mark.parametrize(
        "field, value",
        [
            ("sourceURL", None),
            ("statusCode", True),
            ("statusCode", "200"),
            ("redirected", "yes"),
            ("redirectChain", "abc"),
            ("redirectChain", [1, 2]),
            ("tagFrequency", [["p", 1]]),
            ("contentTokens", "fox"),
            ("capturedAt", 1700000000),
        ],
    )
    def test_wrongly_typed_field(
        self, store: JSONCorpusStore, make_record, field: str, value: object
    ) -> None:
        """Should raise ReadFailure instead of coercing a field."""
        data = make_record().to_dict()
        data[field] = value
        store.path.write_text(json.dumps([data]), encoding="utf-8")

        with pytest.raises(ReadFailure, match=field):
            store.load_all()

    def test_invalid_counts(self, store: JSONCorpusStore, make_record) -> None:
        """Should reject records with zero counts."""
        data = make_record().to_dict()
        data["contentTokens"] = {"word": 0}
        store.path.write_text(json.dumps([data]), encoding="utf-8")

        with pytest.raises(ReadFailure):
            store.load_all()


class TestAppend:
    """Test appending records."""

    def test_append_to_empty_store(self, store: JSONCorpusStore, make_record) -> None:
        """Should create the file with a single record."""
        record = make_record()

        store.append(record)

        assert store.exists()
        assert store.load_all() == [record]

    def test_append_keeps_order(self, store: JSONCorpusStore, make_record) -> None:
        """Should load records in append order."""
        records = [make_record(f"https://example.com/{i}") for i in range(5)]

        for record in records:
            store.append(record)

        assert store.load_all() == records

    def test_duplicates_are_kept(self, store: JSONCorpusStore, make_record) -> None:
        """Should keep both records when a URL is indexed twice."""
        first = make_record(tokens={"old": 1})
        second = make_record(tokens={"new": 2})

        store.append(first)
        store.append(second)

        assert store.load_all() == [first, second]

    def test_dedupe_replaces_earlier_records(self, tmp_path: Path, make_record) -> None:
        """Should drop earlier records for the same URL when dedupe is on."""
        store = JSONCorpusStore(tmp_path / "index.json", dedupe=True)
        other = make_record("https://other.example/")
        first = make_record(tokens={"old": 1})
        second = make_record(tokens={"new": 2})

        store.append(first)
        store.append(other)
        store.append(second)

        assert store.load_all() == [other, second]

    def test_written_file_is_json_array(self, store: JSONCorpusStore, make_record) -> None:
        """Should persist a readable array of objects with corpus field names."""
        store.append(make_record(redirected=True, redirect_chain=("http://example.com/",)))

        data = json.loads(store.path.read_text(encoding="utf-8"))

        assert isinstance(data, list)
        assert set(data[0]) == {
            "sourceURL",
            "statusCode",
            "redirected",
            "redirectChain",
            "tagFrequency",
            "contentTokens",
            "capturedAt",
        }
        assert data[0]["redirectChain"] == ["http://example.com/"]

    def test_creates_parent_directory(self, tmp_path: Path, make_record) -> None:
        """Should create missing parent directories."""
        store = JSONCorpusStore(tmp_path / "nested" / "dir" / "index.json")

        store.append(make_record())

        assert store.exists()

    def test_append_on_corrupt_store_fails(self, store: JSONCorpusStore, make_record) -> None:
        """Should refuse to overwrite an undecodable corpus."""
        store.path.write_text("garbage", encoding="utf-8")

        with pytest.raises(ReadFailure):
            store.append(make_record())

        assert store.path.read_text(encoding="utf-8") == "garbage"

    def test_write_failure(self, store: JSONCorpusStore, make_record) -> None:
        """Should raise WriteFailure and leave the previous corpus intact."""
        first = make_record()
        store.append(first)

        with patch("pageindex.index.storage.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(WriteFailure, match="disk full"):
                store.append(make_record("https://other.example/"))

        assert store.load_all() == [first]
        assert [p.name for p in store.path.parent.iterdir()] == ["index.json"]

    def test_concurrent_appends_keep_every_record(self, tmp_path: Path, make_record) -> None:
        """Should not lose records when several threads append to one file."""
        index_path = tmp_path / "index.json"
        original_write = JSONCorpusStore._write

        def slow_write(self, records):
            time.sleep(0.005)
            original_write(self, records)

        def worker(n: int) -> None:
            # Separate store objects share the lock through the path.
            store = JSONCorpusStore(index_path)
            for i in range(5):
                store.append(make_record(f"https://example.com/{n}/{i}"))

        with patch.object(JSONCorpusStore, "_write", slow_write):
            threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        records = JSONCorpusStore(index_path).load_all()
        assert len(records) == 30
        assert len({record.source_url for record in records}) == 30


class TestSummaries:
    """Test stats and list_documents."""

    def test_stats_empty(self, store: JSONCorpusStore) -> None:
        """Should report zeros for an empty store."""
        stats = store.stats()

        assert stats.document_count == 0
        assert stats.unique_urls == 0
        assert stats.total_tokens == 0

    def test_stats(self, store: JSONCorpusStore, make_record) -> None:
        """Should count documents, unique URLs and tokens."""
        store.append(make_record(tokens={"a": 2, "b": 1}))
        store.append(make_record(tokens={"a": 1}))
        store.append(make_record("https://other.example/", tokens={"c": 4}))

        stats = store.stats()

        assert stats.document_count == 3
        assert stats.unique_urls == 2
        assert stats.total_tokens == 8

    def test_list_documents(self, store: JSONCorpusStore, make_record) -> None:
        """Should summarize records in corpus order."""
        store.append(make_record(tokens={"a": 2, "b": 1}))

        assert store.list_documents() == [
            {
                "sourceURL": "https://example.com/",
                "statusCode": 200,
                "capturedAt": "2024-01-01T00:00:00+00:00",
                "totalWords": 3,
            }
        ]
