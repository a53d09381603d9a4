"""Abstract base class for the document-id to vector-id index."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IDocumentVectorIndex(ABC):
    """Remembers which vector ids belong to which document.

    Deleting a document from a namespace looks its vector ids up here; the
    vector index itself is never scanned by payload.
    """

    @abstractmethod
    async def bulk_insert(self, rows: list[tuple[str, str]]) -> int:
        """Insert ``(doc_id, vector_id)`` rows and return how many were written."""

    @abstractmethod
    async def vector_ids_for(self, doc_id: str) -> list[str]:
        """Return every vector id recorded for *doc_id*, in insertion order."""

    @abstractmethod
    async def delete_for_document(self, doc_id: str) -> int:
        """Remove every row for *doc_id* and return how many were removed."""
