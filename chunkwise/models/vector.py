"""Vector index data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VectorRecord(BaseModel):
    """A single embedded chunk, ready to upsert.

    ``payload`` holds the document metadata plus the chunk text under
    ``"text"``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="UUID v4 primary key in the vector index.")
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return str(self.payload.get("text", ""))


class IndexHit(BaseModel):
    """A single result returned by a vector index query."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = Field(description="Similarity score; higher is more similar.")
    payload: dict[str, Any] = Field(default_factory=dict)


class NamespaceStats(BaseModel):
    """Backend-reported information about one namespace."""

    model_config = ConfigDict(frozen=True)

    name: str
    vector_count: int = Field(default=0, ge=0)
    indexed_vectors_count: int | None = None
    dimension: int | None = None
    distance: str = "cosine"
    status: str = "green"


class CachedVectors(BaseModel):
    """Vector batches previously stored for a source document.

    ``chunks`` mirrors the upsert batching: a list of batches, each a list
    of ``{"vector": [...], "payload": {...}}`` items.
    """

    model_config = ConfigDict(frozen=True)

    exists: bool = False
    chunks: list[list[dict[str, Any]]] = Field(default_factory=list)
