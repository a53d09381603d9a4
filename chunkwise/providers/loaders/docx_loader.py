"""DOCX loader using python-docx.

python-docx reads the XML inside the DOCX zip archive and extracts
paragraph text.  Formatting is stripped.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from docx import Document

from chunkwise.interfaces.document_loader import IDocumentLoader
from chunkwise.models.document import LoadedPage
from chunkwise.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class DocxLoader(IDocumentLoader):
    """Loads a DOCX file as a single page of blank-line separated paragraphs."""

    def load(self, file_path: str | Path) -> list[LoadedPage]:
        try:
            doc = Document(str(file_path))
        except Exception as exc:
            logger.error("docx_open_failed", file_path=str(file_path), error=str(exc))
            raise ExtractionError(
                message=f"Could not open DOCX {file_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = "\n\n".join(para.text for para in doc.paragraphs if para.text.strip())
        logger.info("docx_loaded", file_path=str(file_path), paragraphs=len(doc.paragraphs))
        return [LoadedPage(text=text, page_number=1)]

    def document_metadata(self, file_path: str | Path) -> dict[str, str]:
        """Return the core-properties author and title when set."""
        try:
            props = Document(str(file_path)).core_properties
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not open DOCX {file_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        metadata: dict[str, str] = {}
        if props.author and props.author.strip():
            metadata["author"] = props.author.strip()
        if props.title and props.title.strip():
            metadata["title"] = props.title.strip()
        return metadata

    def supported_extensions(self) -> tuple[str, ...]:
        return (".docx",)

    def get_provider_name(self) -> str:
        return "python-docx"
