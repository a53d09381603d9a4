"""Abstract base class for on-disk document and vector-cache persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from chunkwise.models.document import DocumentRecord
from chunkwise.models.vector import CachedVectors


class IDocumentStorage(ABC):
    """Persists converted document records and per-source vector caches.

    The vector cache lets a document be re-ingested into another namespace
    without paying for embeddings again.
    """

    @abstractmethod
    def write_document_record(self, record: DocumentRecord, slug: str) -> Path:
        """Write *record* as ``<slug>.json`` and return the written path."""

    @abstractmethod
    def read_cached_vectors(self, source_path: str) -> CachedVectors:
        """Return the cached vector batches for *source_path*.

        ``exists`` is ``False`` when nothing was cached.
        """

    @abstractmethod
    def write_cached_vectors(
        self,
        batches: list[list[dict[str, Any]]],
        source_path: str,
    ) -> None:
        """Store vector batches (``{"vector", "payload"}`` items) for *source_path*."""

    @abstractmethod
    def remove_source_file(self, path: str | Path) -> None:
        """Delete an uploaded source file; a missing file is not an error."""
