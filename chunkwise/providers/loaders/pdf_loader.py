"""PDF loader using PyMuPDF (fitz).

Extracts text page by page.  Scanned PDFs only yield text when they carry
an embedded OCR text layer; OCR itself is out of scope.
"""

from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from chunkwise.interfaces.document_loader import IDocumentLoader
from chunkwise.models.document import LoadedPage
from chunkwise.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFLoader(IDocumentLoader):
    """Loads PDF files into one :class:`LoadedPage` per page."""

    def load(self, file_path: str | Path) -> list[LoadedPage]:
        """Return every page of the PDF, empty ones included.

        Page numbers are 1-based.
        """
        try:
            doc = fitz.open(str(file_path))
        except Exception as exc:
            logger.error("pdf_open_failed", file_path=str(file_path), error=str(exc))
            raise ExtractionError(
                message=f"Could not open PDF {file_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        pages: list[LoadedPage] = []
        try:
            for page_num in range(len(doc)):
                text = doc[page_num].get_text("text")
                pages.append(
                    LoadedPage(
                        text=text,
                        page_number=page_num + 1,
                        metadata={"total_pages": len(doc)},
                    )
                )
        finally:
            doc.close()

        logger.info("pdf_loaded", file_path=str(file_path), pages=len(pages))
        return pages

    def document_metadata(self, file_path: str | Path) -> dict[str, str]:
        """Return the PDF's ``author`` and ``title`` info fields when set."""
        try:
            doc = fitz.open(str(file_path))
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not open PDF {file_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        try:
            info = doc.metadata or {}
            page_count = len(doc)
        finally:
            doc.close()

        metadata: dict[str, str] = {"page_count": str(page_count)}
        for key in ("author", "title", "subject", "producer"):
            value = (info.get(key) or "").strip()
            if value:
                metadata[key] = value
        return metadata

    def supported_extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    def get_provider_name(self) -> str:
        return "pymupdf"
