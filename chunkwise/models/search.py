"""Similarity search request and response models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchStrategy(str, Enum):
    VECTOR = "vector"
    HYBRID = "hybrid"
    DISCOVERY = "discovery"


class ContextPair(BaseModel):
    """A positive/negative example vector pair that steers discovery search."""

    model_config = ConfigDict(frozen=True)

    positive: list[float]
    negative: list[float]


class SearchOptions(BaseModel):
    """Tunable parameters of a similarity search."""

    model_config = ConfigDict(frozen=True)

    similarity_threshold: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Hits scoring below this are dropped.",
    )
    top_n: int = Field(default=4, ge=1)
    filter_identifiers: list[str] = Field(
        default_factory=list,
        description="Source identifiers of pinned documents to exclude.",
    )
    rerank: bool = True
    strategy: SearchStrategy = SearchStrategy.VECTOR
    context_pairs: list[ContextPair] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Ranked context texts with their curated source metadata.

    ``context_texts[i]`` is the text of ``sources[i]``.  ``message`` is
    ``None`` on success and a human-readable reason when the search could
    not run (missing input, unknown namespace, backend down).
    """

    model_config = ConfigDict(frozen=True)

    context_texts: list[str] = Field(default_factory=list)
    sources: list[dict[str, Any]] = Field(default_factory=list)
    message: str | None = None
    strategy: SearchStrategy | None = Field(
        default=None,
        description="Strategy that actually produced the results, after fallback.",
    )
