"""Filesystem storage for converted documents and vector caches.

Layout under the storage root::

    documents/<slug>.json          one converted DocumentRecord per file
    vector-cache/<uuid5>.json      cached vector batches per source path

The cache file name is a UUID v5 of the source path, so the same source
always maps to the same cache file regardless of which namespace it is
being ingested into.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any

import structlog

from chunkwise.interfaces.document_storage import IDocumentStorage
from chunkwise.models.document import DocumentRecord
from chunkwise.models.vector import CachedVectors

logger = structlog.get_logger(logger_name=__name__)

_DOCUMENTS_DIR = "documents"
_VECTOR_CACHE_DIR = "vector-cache"


def cache_key(source_path: str) -> str:
    """Return the deterministic cache file stem for *source_path*."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, source_path))


class LocalDocumentStorage(IDocumentStorage):
    """JSON files under a single storage root directory."""

    def __init__(self, storage_dir: str | Path = "./data/storage") -> None:
        self._root = Path(storage_dir)

    @property
    def documents_dir(self) -> Path:
        return self._root / _DOCUMENTS_DIR

    @property
    def vector_cache_dir(self) -> Path:
        return self._root / _VECTOR_CACHE_DIR

    def write_document_record(self, record: DocumentRecord, slug: str) -> Path:
        self.documents_dir.mkdir(parents=True, exist_ok=True)
        path = self.documents_dir / f"{slug}.json"
        path.write_text(record.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        logger.info("document_record_written", path=str(path), doc_id=record.id)
        return path

    def read_cached_vectors(self, source_path: str) -> CachedVectors:
        path = self.vector_cache_dir / f"{cache_key(source_path)}.json"
        if not path.exists():
            return CachedVectors(exists=False)
        try:
            chunks = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("vector_cache_unreadable", path=str(path), error=str(exc))
            return CachedVectors(exists=False)
        if not isinstance(chunks, list):
            logger.warning("vector_cache_malformed", path=str(path))
            return CachedVectors(exists=False)
        return CachedVectors(exists=True, chunks=chunks)

    def write_cached_vectors(
        self,
        batches: list[list[dict[str, Any]]],
        source_path: str,
    ) -> None:
        self.vector_cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.vector_cache_dir / f"{cache_key(source_path)}.json"
        path.write_text(json.dumps(batches), encoding="utf-8")
        logger.info(
            "vector_cache_written",
            source_path=source_path,
            batches=len(batches),
            path=str(path),
        )

    def remove_source_file(self, path: str | Path) -> None:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("source_file_remove_failed", path=str(path), error=str(exc))
            return
        logger.debug("source_file_removed", path=str(path))
