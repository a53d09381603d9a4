"""Canonical document record produced by conversion and consumed by ingestion.

Persisted records use the camelCase keys of the original JSON document
format (``docAuthor``, ``pageContent`` ...), so the model declares those as
aliases and accepts either spelling on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentRecord(BaseModel):
    """A normalized document, ready to be chunked and embedded."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="UUID v4 identifying the document.")
    url: str = Field(default="", description="Origin locator, e.g. ``file:///path``.")
    title: str = Field(default="", description="Display title (usually the filename).")
    doc_author: str = Field(
        default="no author found",
        alias="docAuthor",
        description="Author taken from file metadata when available.",
    )
    description: str = Field(default="No description found.")
    doc_source: str = Field(
        default="",
        alias="docSource",
        description='Human-readable provenance, e.g. "pdf file uploaded by the user."',
    )
    chunk_source: str = Field(
        default="",
        alias="chunkSource",
        description="Link-style source (``link://`` or ``youtube://``) surfaced in chunk headers.",
    )
    published: str = Field(default="", description="Creation date of the source file.")
    word_count: int = Field(default=0, ge=0, alias="wordCount")
    page_content: str = Field(default="", alias="pageContent")
    token_count_estimate: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Loader-specific extras (page count, producer ...).",
    )

    def header_source(self) -> dict[str, Any]:
        """Return the fields used to build a chunk header, keyed as persisted."""
        return {
            "title": self.title,
            "published": self.published,
            "chunkSource": self.chunk_source,
        }

    def payload_metadata(self) -> dict[str, Any]:
        """Return every field except ``page_content``, for vector payloads."""
        return self.model_dump(by_alias=True, exclude={"page_content", "metadata"})


class LoadedPage(BaseModel):
    """One page (or section) of text returned by a document loader."""

    model_config = ConfigDict(frozen=True)

    text: str
    page_number: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
