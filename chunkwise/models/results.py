"""Structured outcomes of public operations.

Public orchestration and conversion methods never raise for backend
failures; they return one of these models with ``error`` / ``reason`` set.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from chunkwise.models.document import DocumentRecord
from chunkwise.models.vector import NamespaceStats


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AddDocumentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    vectorized: bool
    error: str | None = None
    chunk_count: int = Field(default=0, ge=0)
    vector_ids: list[str] = Field(default_factory=list)
    from_cache: bool = False


class DeleteResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    removed: int = Field(default=0, ge=0)
    error: str | None = None


class NamespaceStatsResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    stats: NamespaceStats | None = None
    error: str | None = None


class DeleteNamespaceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str = ""
    deleted_vectors: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=_utcnow)


class ResetResult(BaseModel):
    """Outcome of deleting every namespace.

    ``failed`` lists namespaces whose deletion raised; the reset carries on
    past them.
    """

    model_config = ConfigDict(frozen=True)

    reset: bool
    deleted_namespaces: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)


class ConversionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    reason: str | None = None
    documents: list[DocumentRecord] = Field(default_factory=list)
