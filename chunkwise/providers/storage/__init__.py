"""Document and vector-cache storage implementations."""

from chunkwise.providers.storage.local_document_storage import LocalDocumentStorage

__all__ = ["LocalDocumentStorage"]
