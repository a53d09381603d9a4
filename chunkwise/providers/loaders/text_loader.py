"""Plain-text loader for text, markup and source files."""

from __future__ import annotations

from pathlib import Path

import structlog

from chunkwise.interfaces.document_loader import IDocumentLoader
from chunkwise.models.document import LoadedPage
from chunkwise.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_EXTENSIONS = (
    ".txt", ".md", ".markdown", ".mdx", ".rst", ".tex", ".latex",
    ".html", ".htm", ".xml", ".csv", ".tsv", ".json", ".yml", ".yaml",
    ".toml", ".ini", ".log", ".py", ".js", ".jsx", ".ts", ".tsx",
    ".java", ".go", ".rs", ".rb", ".php", ".swift", ".scala", ".c",
    ".cpp", ".h", ".hpp", ".proto", ".sol",
)


class TextLoader(IDocumentLoader):
    """Reads a file as UTF-8; undecodable bytes are replaced, not fatal."""

    def load(self, file_path: str | Path) -> list[LoadedPage]:
        try:
            text = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExtractionError(
                message=f"Could not read {file_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("text_loaded", file_path=str(file_path), chars=len(text))
        return [LoadedPage(text=text, page_number=1)]

    def supported_extensions(self) -> tuple[str, ...]:
        return _TEXT_EXTENSIONS

    def get_provider_name(self) -> str:
        return "text"
