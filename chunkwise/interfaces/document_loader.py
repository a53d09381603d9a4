"""Abstract base class for file-format loaders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from chunkwise.models.document import LoadedPage


# Concrete implementations (chunkwise/providers/loaders/):
#   PDFLoader   - PyMuPDF page text plus document metadata
#   DocxLoader  - python-docx paragraph text
#   TextLoader  - UTF-8 plain text
class IDocumentLoader(ABC):
    """Extracts text from one file format."""

    @abstractmethod
    def load(self, file_path: str | Path) -> list[LoadedPage]:
        """Return the pages (or sections) of *file_path*.

        Raises
        ------
        chunkwise.utils.errors.ExtractionError
            If the file cannot be opened or parsed.
        """

    @abstractmethod
    def supported_extensions(self) -> tuple[str, ...]:
        """Return lowercase extensions this loader handles, e.g. ``(".pdf",)``."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"pymupdf"``."""

    def document_metadata(self, file_path: str | Path) -> dict[str, str]:
        """Return file-level metadata (author, title); empty by default."""
        return {}
