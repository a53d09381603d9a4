"""chunkwise domain models; re-exports all public model classes.

    - document.py - DocumentRecord and loader pages
    - chunking.py - splitter strategies, resolved config, positioned chunks
    - vector.py   - vector records, index hits, namespace stats, cached vectors
    - search.py   - search options and results
    - results.py  - structured outcomes of public operations
"""

from __future__ import annotations

from chunkwise.models.chunking import ChunkSpan, SplitterConfig, SplitterType, StrategySelection
from chunkwise.models.document import DocumentRecord, LoadedPage
from chunkwise.models.results import (
    AddDocumentResult,
    ConversionResult,
    DeleteNamespaceResult,
    DeleteResult,
    NamespaceStatsResult,
    ResetResult,
)
from chunkwise.models.search import ContextPair, SearchOptions, SearchResult, SearchStrategy
from chunkwise.models.vector import CachedVectors, IndexHit, NamespaceStats, VectorRecord

__all__ = [
    "AddDocumentResult",
    "CachedVectors",
    "ChunkSpan",
    "ContextPair",
    "ConversionResult",
    "DeleteNamespaceResult",
    "DeleteResult",
    "DocumentRecord",
    "IndexHit",
    "LoadedPage",
    "NamespaceStats",
    "NamespaceStatsResult",
    "ResetResult",
    "SearchOptions",
    "SearchResult",
    "SearchStrategy",
    "SplitterConfig",
    "SplitterType",
    "StrategySelection",
    "VectorRecord",
]
