"""Ingestion: converting uploaded files into document records."""

from chunkwise.services.ingestion.document_converter import DocumentConverter

__all__ = ["DocumentConverter"]
