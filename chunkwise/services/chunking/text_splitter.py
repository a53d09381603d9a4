"""TextSplitter facade: configuration, strategy dispatch and post-processing.

Callers describe what they are splitting (a filename, a language, an
explicit strategy, or nothing at all) plus size parameters.  The facade
resolves that into one immutable :class:`SplitterConfig`, builds the
matching splitter, and on every call:

1. splits the text with the strategy,
2. drops chunks whose trimmed content is shorter than ``min_chunk_size``
   (measured in the strategy's unit),
3. prefixes the ``<document_metadata>`` header block, when one is set.

:meth:`TextSplitter.determine_max_chunk_size` is the one place where a
requested chunk size is reconciled with the embedding model's hard input
limit; ingestion never builds a splitter from an unreconciled size.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

import structlog

from chunkwise.models.chunking import ChunkSpan, SplitterConfig, SplitterType
from chunkwise.services.chunking.separators import SUPPORTED_LANGUAGES, separators_for_language
from chunkwise.services.chunking.splitters import SPLITTER_REGISTRY, BaseSplitter
from chunkwise.services.chunking.strategy_selector import StrategySelector
from chunkwise.utils.errors import ConfigurationError
from chunkwise.utils.tokenizer import TokenCounter

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 20
DEFAULT_MIN_CHUNK_SIZE = 100
DEFAULT_EMBEDDER_LIMIT = 1000

_LINK_PREFIXES = ("link://", "youtube://")
_STRUCTURAL_LANGUAGES = {
    "markdown": SplitterType.MARKDOWN,
    "latex": SplitterType.LATEX,
    "html": SplitterType.HTML,
}


def _is_null_or_nan(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def _coerce_int(value: Any, default: int) -> int:
    """Coerce *value* to ``int``, using *default* for None / NaN / non-numeric."""
    if _is_null_or_nan(value):
        return default
    return int(float(value))


class TextSplitter:
    """Content-aware text splitter.

    Parameters
    ----------
    chunk_size:
        Maximum chunk length including the header (characters, or tokens
        for the token strategy).  Default 1000.
    chunk_overlap:
        Boundary text shared by adjacent chunks.  Default 20.  Must be
        smaller than *chunk_size*.
    min_chunk_size:
        Chunks with less trimmed content than this are dropped.  Default
        100, clamped to *chunk_size*.
    chunk_header_meta:
        Key/value pairs rendered into the header block (see
        :meth:`build_header_meta`).
    split_by_filename:
        File name whose extension picks the strategy.
    splitter_type:
        Explicit strategy; wins over filename and content.
    language:
        Programming or markup language (see :data:`SUPPORTED_LANGUAGES`).
    separators:
        Regex separators overriding the strategy's own list.
    keep_separator:
        Keep each separator at the start of the following chunk.
    separator:
        Literal separator for the character strategy.
    content_sample:
        Leading document text used for content sniffing.
    default_strategy:
        Strategy when nothing else decides.
    token_counter:
        Tokenizer for the token strategy.

    Raises
    ------
    ConfigurationError
        If the overlap is not smaller than the chunk size, the chunk size
        is not positive, or the language / strategy is unknown.
    """

    SUPPORTED_LANGUAGES = SUPPORTED_LANGUAGES

    def __init__(
        self,
        chunk_size: Any = None,
        chunk_overlap: Any = None,
        min_chunk_size: Any = None,
        chunk_header_meta: Mapping[str, Any] | None = None,
        split_by_filename: str | None = None,
        splitter_type: SplitterType | str | None = None,
        language: str | None = None,
        separators: list[str] | tuple[str, ...] | None = None,
        keep_separator: bool | None = None,
        separator: str | None = None,
        content_sample: str | None = None,
        default_strategy: SplitterType | str = SplitterType.RECURSIVE,
        token_counter: TokenCounter | None = None,
    ) -> None:
        self._config = self._resolve_config(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            min_chunk_size=min_chunk_size,
            chunk_header_meta=chunk_header_meta,
            split_by_filename=split_by_filename,
            splitter_type=splitter_type,
            language=language,
            separators=separators,
            keep_separator=keep_separator,
            separator=separator,
            content_sample=content_sample,
            default_strategy=default_strategy,
        )
        splitter_cls = SPLITTER_REGISTRY[self._config.strategy]
        self._splitter: BaseSplitter = splitter_cls(
            self._config,
            header=self.stringify_header(),
            token_counter=token_counter,
        )
        logger.debug(
            "text_splitter_configured",
            strategy=self._config.strategy.value,
            chunk_size=self._config.chunk_size,
            chunk_overlap=self._config.chunk_overlap,
            min_chunk_size=self._config.min_chunk_size,
            language=self._config.language,
            has_header=self._splitter.header is not None,
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_config(
        chunk_size: Any,
        chunk_overlap: Any,
        min_chunk_size: Any,
        chunk_header_meta: Mapping[str, Any] | None,
        split_by_filename: str | None,
        splitter_type: SplitterType | str | None,
        language: str | None,
        separators: list[str] | tuple[str, ...] | None,
        keep_separator: bool | None,
        separator: str | None,
        content_sample: str | None,
        default_strategy: SplitterType | str,
    ) -> SplitterConfig:
        size = _coerce_int(chunk_size, DEFAULT_CHUNK_SIZE)
        overlap = _coerce_int(chunk_overlap, DEFAULT_CHUNK_OVERLAP)
        min_size = _coerce_int(min_chunk_size, DEFAULT_MIN_CHUNK_SIZE)

        if size < 1:
            raise ConfigurationError(message=f"chunk_size must be positive, got {size}")
        if overlap < 0:
            raise ConfigurationError(message=f"chunk_overlap must not be negative, got {overlap}")
        if overlap >= size:
            raise ConfigurationError(
                message=f"chunk_overlap ({overlap}) must be smaller than chunk_size ({size})"
            )
        if min_size > size:
            logger.warning("min_chunk_size_clamped", min_chunk_size=min_size, chunk_size=size)
            min_size = size
        min_size = max(min_size, 0)

        if language is not None and language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(
                message=(
                    f"Language {language} is not supported. "
                    f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
                )
            )

        selection = StrategySelector(default_strategy).select(
            filename=split_by_filename,
            content_sample=content_sample,
            override=splitter_type,
        )
        if selection.source != "default":
            logger.debug(
                "splitter_strategy_selected",
                strategy=selection.strategy.value,
                source=selection.source,
                filename=split_by_filename,
            )

        resolved_language = language or selection.language
        resolved_separators = tuple(separators) if separators else None
        if (
            resolved_separators is None
            and resolved_language
            and selection.strategy in (SplitterType.RECURSIVE, SplitterType.CODE)
        ):
            resolved_separators = separators_for_language(resolved_language)

        return SplitterConfig(
            strategy=selection.strategy,
            chunk_size=size,
            chunk_overlap=overlap,
            min_chunk_size=min_size,
            chunk_header_meta=(
                {str(k): str(v) for k, v in chunk_header_meta.items()}
                if chunk_header_meta
                else None
            ),
            language=resolved_language,
            separators=resolved_separators,
            separator=separator if separator is not None else selection.separator,
            keep_separator=(
                keep_separator if keep_separator is not None else selection.keep_separator
            ),
        )

    @classmethod
    def for_language(cls, language: str, **kwargs: Any) -> TextSplitter:
        """Build a splitter for a programming or markup *language*.

        Raises
        ------
        ConfigurationError
            If *language* is not supported.
        """
        if language not in SUPPORTED_LANGUAGES:
            raise ConfigurationError(
                message=(
                    f"Language {language} is not supported. "
                    f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
                )
            )
        if language in _STRUCTURAL_LANGUAGES:
            return cls(splitter_type=_STRUCTURAL_LANGUAGES[language], **kwargs)
        kwargs.setdefault("keep_separator", True)
        return cls(splitter_type=SplitterType.CODE, language=language, **kwargs)

    @classmethod
    def for_filename(cls, filename: str, **kwargs: Any) -> TextSplitter:
        """Build a splitter whose strategy follows *filename*'s extension."""
        return cls(split_by_filename=filename, **kwargs)

    # ------------------------------------------------------------------
    # Header metadata
    # ------------------------------------------------------------------

    @staticmethod
    def build_header_meta(metadata: Mapping[str, Any] | None = None) -> dict[str, str] | None:
        """Pick the document fields that belong in a chunk header.

        Only three fields are promoted: ``title`` as ``sourceDocument``,
        ``published`` as ``published``, and ``chunkSource`` as ``source``
        when it carries a ``link://`` or ``youtube://`` prefix (the prefix is
        stripped).  Everything else is ignored.

        Returns ``None`` for empty metadata.
        """
        if not metadata:
            return None

        plucked: dict[str, str] = {}
        title = metadata.get("title")
        if title:
            plucked["sourceDocument"] = str(title)
        published = metadata.get("published")
        if published:
            plucked["published"] = str(published)

        chunk_source = metadata.get("chunkSource")
        if isinstance(chunk_source, str):
            for prefix in _LINK_PREFIXES:
                if chunk_source.startswith(prefix) and chunk_source[len(prefix) :]:
                    plucked["source"] = chunk_source[len(prefix) :]
                    break
        return plucked

    def stringify_header(self) -> str | None:
        """Render the header block, or ``None`` when there is nothing to render."""
        meta = self._config.chunk_header_meta
        if not meta:
            return None
        content = "".join(f"{key}: {value}\n" for key, value in meta.items() if key and value)
        if not content:
            return None
        return f"<document_metadata>\n{content}</document_metadata>\n\n"

    # ------------------------------------------------------------------
    # Size reconciliation
    # ------------------------------------------------------------------

    @staticmethod
    def determine_max_chunk_size(preferred: Any = None, embedder_limit: Any = DEFAULT_EMBEDDER_LIMIT) -> int:
        """Return ``min(preferred, embedder_limit)``.

        ``None`` or NaN *preferred* means "use the embedder limit".  A
        preference above the limit is clamped with a warning.  The function
        is idempotent: feeding its result back in returns the same value.
        """
        limit = _coerce_int(embedder_limit, DEFAULT_EMBEDDER_LIMIT)
        value = limit if _is_null_or_nan(preferred) else int(float(preferred))
        if value > limit:
            logger.warning(
                "chunk_size_exceeds_embedder_limit",
                preferred=value,
                embedder_limit=limit,
                using=limit,
            )
            return limit
        return value

    # ------------------------------------------------------------------
    # Splitting
    # ------------------------------------------------------------------

    @property
    def config(self) -> SplitterConfig:
        return self._config

    @property
    def strategy(self) -> SplitterType:
        return self._config.strategy

    @property
    def header(self) -> str | None:
        """Header actually applied, after the half-budget check."""
        return self._splitter.header

    def split_text(self, text: str) -> list[str]:
        """Split *text* into header-prefixed chunks, left to right."""
        return [self._with_header(content) for content in self._contents(text)]

    def split_with_positions(self, text: str) -> list[ChunkSpan]:
        """Split *text* and annotate each chunk with its position.

        Offsets come from a forward substring search of each chunk's
        content in *text*; they are ``-1`` when the content was altered by
        the strategy (back-filled heading, appended braces, re-joined
        paragraphs) and may point at an earlier copy of repeated content.
        """
        contents = self._contents(text)
        spans: list[ChunkSpan] = []
        cursor = 0
        for index, content in enumerate(contents):
            start = text.find(content, cursor)
            end = -1
            if start != -1:
                end = start + len(content)
                cursor = start + 1
            spans.append(
                ChunkSpan(
                    index=index,
                    total=len(contents),
                    text=self._with_header(content),
                    content=content,
                    start=start,
                    end=end,
                )
            )
        return spans

    def _contents(self, text: str) -> list[str]:
        if not text or not text.strip():
            return []
        min_size = min(self._config.min_chunk_size, self._splitter.content_budget)
        chunks = self._splitter.split(text)
        kept = [c for c in chunks if c.strip() and self._splitter.length(c.strip()) >= min_size]
        if len(kept) < len(chunks):
            logger.debug(
                "chunks_below_min_size_dropped",
                dropped=len(chunks) - len(kept),
                min_chunk_size=min_size,
            )
        return kept

    def _with_header(self, content: str) -> str:
        header = self._splitter.header
        return f"{header}{content}" if header else content
