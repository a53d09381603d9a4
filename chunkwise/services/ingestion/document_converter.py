"""Converts uploaded files into :class:`DocumentRecord` JSON documents.

Pipeline per file: **load pages -> drop empty pages -> join -> count ->
write record -> remove upload**.

The uploaded source file is always removed, whether conversion succeeded
or not.  Failures are reported through :class:`ConversionResult`, never
raised.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from pathlib import Path

import structlog

from chunkwise.interfaces.document_loader import IDocumentLoader
from chunkwise.interfaces.document_storage import IDocumentStorage
from chunkwise.models.document import DocumentRecord
from chunkwise.models.results import ConversionResult
from chunkwise.utils.tokenizer import TokenCounter, estimate_tokens

logger = structlog.get_logger(logger_name=__name__)

_SLUG_STRIP_RE = re.compile(r"[^\w\s.-]")
_SLUG_SPACE_RE = re.compile(r"\s+")


def slugify(value: str) -> str:
    """Return a filesystem-safe slug: spaces become hyphens, symbols are dropped."""
    cleaned = _SLUG_STRIP_RE.sub("", value).strip()
    return _SLUG_SPACE_RE.sub("-", cleaned)


def created_date(file_path: str | Path) -> str:
    """Return the file's creation time, or now when it cannot be read."""
    try:
        stat = Path(file_path).stat()
        timestamp = getattr(stat, "st_birthtime", stat.st_ctime)
        return datetime.fromtimestamp(timestamp).strftime("%m/%d/%Y, %I:%M:%S %p")
    except OSError as exc:
        logger.warning("created_date_unavailable", file_path=str(file_path), error=str(exc))
        return datetime.now().strftime("%m/%d/%Y, %I:%M:%S %p")


class DocumentConverter:
    """Turns one uploaded file into a stored :class:`DocumentRecord`.

    Parameters
    ----------
    loaders:
        Loaders to choose from by file extension; the first match wins.
    storage:
        Where converted records are written and uploads are removed.
    token_counter:
        Used for ``token_count_estimate``; falls back to
        ``ceil(len / 4)`` when counting fails.
    """

    def __init__(
        self,
        loaders: list[IDocumentLoader],
        storage: IDocumentStorage,
        token_counter: TokenCounter | None = None,
    ) -> None:
        self._loaders = loaders
        self._storage = storage
        self._token_counter = token_counter or TokenCounter()

    def loader_for(self, filename: str) -> IDocumentLoader | None:
        extension = Path(filename).suffix.lower()
        for loader in self._loaders:
            if extension in loader.supported_extensions():
                return loader
        return None

    def convert(self, full_file_path: str | Path, filename: str | None = None) -> ConversionResult:
        """Convert the file at *full_file_path*.

        Parameters
        ----------
        full_file_path:
            Location of the uploaded file.
        filename:
            Original file name; used as the title and slug.  Defaults to
            the name of *full_file_path*.
        """
        if not full_file_path:
            return ConversionResult(
                success=False,
                reason="Missing required parameters: full_file_path is required.",
            )
        path = Path(full_file_path)
        filename = filename or path.name
        log = logger.bind(filename=filename)

        try:
            return self._convert(path, filename, log)
        except Exception as exc:
            log.error("document_conversion_failed", error=str(exc), exc_type=type(exc).__name__)
            return ConversionResult(success=False, reason=f"Failed to process {filename}: {exc}")
        finally:
            self._storage.remove_source_file(path)

    def _convert(self, path: Path, filename: str, log) -> ConversionResult:  # noqa: ANN001
        loader = self.loader_for(filename)
        if loader is None:
            return ConversionResult(
                success=False,
                reason=f"File extension {Path(filename).suffix or '(none)'} not supported for parsing.",
            )

        log.info("document_conversion_started", loader=loader.get_provider_name())
        pages = loader.load(path)
        texts: list[str] = []
        for page in pages:
            text = page.text.strip()
            if not text:
                log.debug("empty_page_skipped", page=page.page_number)
                continue
            texts.append(text)

        if not texts:
            log.warning("no_text_extracted", pages=len(pages))
            return ConversionResult(success=False, reason=f"No text content found in {filename}.")

        content = "\n\n".join(texts)
        file_meta = loader.document_metadata(path)
        extension = Path(filename).suffix.lower().lstrip(".") or path.suffix.lower().lstrip(".")

        record = DocumentRecord(
            id=str(uuid.uuid4()),
            url=f"file://{path}",
            title=filename,
            doc_author=file_meta.get("author") or "no author found",
            description=file_meta.get("title") or "No description found.",
            doc_source=f"{extension} file uploaded by the user.",
            chunk_source="",
            published=created_date(path),
            word_count=len(content.split()),
            page_content=content,
            token_count_estimate=self._count_tokens(content),
            metadata={
                **{k: v for k, v in file_meta.items() if k not in ("author", "title")},
                "total_pages": len(pages),
            },
        )
        self._storage.write_document_record(record, f"{slugify(filename)}-{record.id}")
        log.info(
            "document_converted",
            doc_id=record.id,
            pages=len(texts),
            words=record.word_count,
            tokens=record.token_count_estimate,
        )
        return ConversionResult(success=True, documents=[record])

    def _count_tokens(self, content: str) -> int:
        try:
            return self._token_counter.count(content)
        except Exception as exc:
            logger.warning("token_count_failed_estimating", error=str(exc))
            return estimate_tokens(content)
