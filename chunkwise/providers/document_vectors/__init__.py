"""Document-id to vector-id index implementations."""

from chunkwise.providers.document_vectors.sqlite_document_vector_index import (
    SQLiteDocumentVectorIndex,
)

__all__ = ["SQLiteDocumentVectorIndex"]
