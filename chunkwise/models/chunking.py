"""Chunking configuration and output models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SplitterType(str, Enum):
    """Closed set of chunking strategies."""

    RECURSIVE = "recursive"
    CHARACTER = "character"
    TOKEN = "token"
    MARKDOWN = "markdown"
    LATEX = "latex"
    HTML = "html"
    SEMANTIC = "semantic"
    CODE = "code"


class SplitterConfig(BaseModel):
    """Fully resolved splitter configuration.

    Built once by :class:`~chunkwise.services.chunking.text_splitter.TextSplitter`
    before any splitter is instantiated; splitters only ever read it.
    """

    model_config = ConfigDict(frozen=True)

    strategy: SplitterType = SplitterType.RECURSIVE
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=20, ge=0)
    min_chunk_size: int = Field(default=100, ge=0)
    chunk_header_meta: dict[str, str] | None = None
    language: str | None = None
    separators: tuple[str, ...] | None = None
    separator: str | None = None
    keep_separator: bool | None = None


class StrategySelection(BaseModel):
    """Outcome of strategy resolution for one document.

    ``source`` records which rule decided: ``"override"``, ``"extension"``,
    ``"content"`` or ``"default"``.
    """

    model_config = ConfigDict(frozen=True)

    strategy: SplitterType
    source: str = "default"
    language: str | None = None
    separator: str | None = None
    keep_separator: bool | None = None


class ChunkSpan(BaseModel):
    """A chunk annotated with its position in the source text.

    ``start`` and ``end`` are best-effort character offsets of ``content``
    within the source; both are ``-1`` when the content could not be
    located (e.g. a markdown chunk with a back-filled heading).
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    total: int = Field(ge=0)
    text: str = Field(description="Chunk text including any metadata header.")
    content: str = Field(description="Chunk text without the header.")
    start: int = -1
    end: int = -1
