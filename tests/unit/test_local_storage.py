"""Unit tests for LocalDocumentStorage."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chunkwise.models.document import DocumentRecord
from chunkwise.providers.storage.local_document_storage import LocalDocumentStorage, cache_key


@pytest.fixture()
def storage(tmp_path: Path) -> LocalDocumentStorage:
    return LocalDocumentStorage(tmp_path / "storage")


class TestCacheKey:
    def test_deterministic(self) -> None:
        assert cache_key("/uploads/a.pdf") == cache_key("/uploads/a.pdf")

    def test_distinct_paths(self) -> None:
        assert cache_key("/uploads/a.pdf") != cache_key("/uploads/b.pdf")


class TestDocumentRecords:
    def test_written_with_camel_case_keys(self, storage: LocalDocumentStorage) -> None:
        record = DocumentRecord(id="abc", title="a.txt", page_content="hello", word_count=1)

        path = storage.write_document_record(record, "a.txt-abc")

        assert path == storage.documents_dir / "a.txt-abc.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["pageContent"] == "hello"
        assert data["wordCount"] == 1
        assert DocumentRecord.model_validate(data) == record


class TestVectorCache:
    def test_missing_cache(self, storage: LocalDocumentStorage) -> None:
        cached = storage.read_cached_vectors("/uploads/a.pdf")
        assert cached.exists is False
        assert cached.chunks == []

    def test_round_trip(self, storage: LocalDocumentStorage) -> None:
        batches = [[{"vector": [0.1, 0.2], "payload": {"id": "doc", "text": "t"}}]]

        storage.write_cached_vectors(batches, "/uploads/a.pdf")
        cached = storage.read_cached_vectors("/uploads/a.pdf")

        assert cached.exists is True
        assert cached.chunks == batches

    def test_corrupt_cache_is_treated_as_missing(self, storage: LocalDocumentStorage) -> None:
        storage.vector_cache_dir.mkdir(parents=True)
        (storage.vector_cache_dir / f"{cache_key('/x')}.json").write_text("{not json")
        assert storage.read_cached_vectors("/x").exists is False

    def test_non_list_cache_is_treated_as_missing(self, storage: LocalDocumentStorage) -> None:
        storage.vector_cache_dir.mkdir(parents=True)
        (storage.vector_cache_dir / f"{cache_key('/x')}.json").write_text('{"a": 1}')
        assert storage.read_cached_vectors("/x").exists is False


class TestRemoveSourceFile:
    def test_removes_file(self, storage: LocalDocumentStorage, tmp_path: Path) -> None:
        upload = tmp_path / "upload.txt"
        upload.write_text("x")
        storage.remove_source_file(upload)
        assert not upload.exists()

    def test_missing_file_is_fine(self, storage: LocalDocumentStorage, tmp_path: Path) -> None:
        storage.remove_source_file(tmp_path / "never-existed.txt")
