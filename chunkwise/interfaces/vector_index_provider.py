"""Abstract base class for vector index providers.

Defines the namespace and point operations the orchestrator and the search
pipeline depend on.  A *namespace* is an isolated collection of vectors
(a Qdrant collection, a ChromaDB collection, a dict in memory).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from chunkwise.models.search import ContextPair
from chunkwise.models.vector import IndexHit, NamespaceStats, VectorRecord


# Concrete implementations (chunkwise/providers/vector_index/):
#   QdrantIndexProvider    - remote Qdrant via qdrant-client
#   ChromaDBIndexProvider  - local persistent ChromaDB
#   InMemoryIndexProvider  - process-local, for tests and small corpora
class IVectorIndexProvider(ABC):
    """Contract for vector index backends.

    All methods are async so network-backed indexes never block the event
    loop.  Backend failures are raised as
    :class:`~chunkwise.utils.errors.VectorIndexError` (or a subclass).
    """

    @abstractmethod
    async def heartbeat(self) -> bool:
        """Return ``True`` when the index answers a liveness check."""

    @abstractmethod
    async def list_namespaces(self) -> list[str]:
        """Return the names of every namespace in the index."""

    @abstractmethod
    async def namespace_exists(self, namespace: str) -> bool:
        """Return ``True`` if *namespace* exists."""

    @abstractmethod
    async def create_namespace(self, namespace: str, dimension: int) -> None:
        """Create *namespace* for vectors of *dimension* using cosine distance.

        Raises
        ------
        chunkwise.utils.errors.NamespaceConflictError
            If the namespace already exists.
        """

    @abstractmethod
    async def delete_namespace(self, namespace: str) -> None:
        """Drop *namespace* and every vector in it."""

    @abstractmethod
    async def get_namespace(self, namespace: str) -> NamespaceStats | None:
        """Return stats for *namespace*, or ``None`` if it does not exist."""

    @abstractmethod
    async def count(self, namespace: str) -> int:
        """Return the number of vectors stored in *namespace*."""

    @abstractmethod
    async def upsert(self, namespace: str, records: list[VectorRecord]) -> bool:
        """Insert or replace *records* and wait for the write to complete.

        Returns
        -------
        bool
            ``True`` when the backend reports the write as completed,
            ``False`` when it accepted the request but did not complete it.
            The caller decides whether to retry.
        """

    @abstractmethod
    async def delete_vectors(self, namespace: str, ids: list[str]) -> None:
        """Delete the vectors with the given ids, waiting for completion."""

    @abstractmethod
    async def query(
        self,
        namespace: str,
        vector: list[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Plain nearest-neighbour search, best hit first."""

    @abstractmethod
    async def hybrid_query(
        self,
        namespace: str,
        vector: list[float],
        text: str,
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Fuse a vector ranking with a ranking of chunks sharing words with *text*.

        Both rankings hold up to ``2 * limit`` hits at or above
        *score_threshold* and are merged by reciprocal rank fusion, so a
        word match can lift a chunk the vector ranking alone would miss.
        Returned scores stay cosine similarities.  Without usable words in
        *text* the result equals :meth:`query`.
        """

    @abstractmethod
    async def discover(
        self,
        namespace: str,
        target: list[float],
        context_pairs: list[ContextPair],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Search towards *target*, steered by positive/negative context pairs."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"qdrant"``."""
