"""Process-local vector index.

Keeps every namespace as a dict of records and answers queries with a
brute-force cosine scan.  Suited to tests and corpora of a few thousand
chunks; nothing is persisted.
"""

from __future__ import annotations

import structlog

from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider
from chunkwise.models.search import ContextPair
from chunkwise.models.vector import IndexHit, NamespaceStats, VectorRecord
from chunkwise.providers.vector_index.fusion import (
    cosine_similarity,
    matched_terms,
    query_terms,
    reciprocal_rank_fusion,
)
from chunkwise.utils.errors import NamespaceConflictError, NotFoundError, VectorIndexError

logger = structlog.get_logger(logger_name=__name__)


class _Namespace:
    __slots__ = ("dimension", "records")

    def __init__(self, dimension: int) -> None:
        self.dimension = dimension
        self.records: dict[str, VectorRecord] = {}


class InMemoryIndexProvider(IVectorIndexProvider):
    """Brute-force cosine index held in a dict."""

    def __init__(self) -> None:
        self._namespaces: dict[str, _Namespace] = {}

    # ------------------------------------------------------------------
    # Namespace lifecycle
    # ------------------------------------------------------------------

    async def heartbeat(self) -> bool:
        return True

    async def list_namespaces(self) -> list[str]:
        return list(self._namespaces)

    async def namespace_exists(self, namespace: str) -> bool:
        return namespace in self._namespaces

    async def create_namespace(self, namespace: str, dimension: int) -> None:
        if namespace in self._namespaces:
            raise NamespaceConflictError(
                message=f"Namespace {namespace} already exists",
                provider_name=self.get_provider_name(),
            )
        self._namespaces[namespace] = _Namespace(dimension)
        logger.info("namespace_created", namespace=namespace, dimension=dimension)

    async def delete_namespace(self, namespace: str) -> None:
        self._namespaces.pop(namespace, None)

    async def get_namespace(self, namespace: str) -> NamespaceStats | None:
        ns = self._namespaces.get(namespace)
        if ns is None:
            return None
        return NamespaceStats(
            name=namespace,
            vector_count=len(ns.records),
            indexed_vectors_count=len(ns.records),
            dimension=ns.dimension,
        )

    async def count(self, namespace: str) -> int:
        ns = self._namespaces.get(namespace)
        return len(ns.records) if ns else 0

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    async def upsert(self, namespace: str, records: list[VectorRecord]) -> bool:
        ns = self._require(namespace)
        for record in records:
            if len(record.vector) != ns.dimension:
                raise VectorIndexError(
                    message=(
                        f"Vector dimension {len(record.vector)} does not match "
                        f"namespace dimension {ns.dimension}"
                    ),
                    provider_name=self.get_provider_name(),
                )
        for record in records:
            ns.records[record.id] = record
        return True

    async def delete_vectors(self, namespace: str, ids: list[str]) -> None:
        ns = self._namespaces.get(namespace)
        if ns is None:
            return
        for vector_id in ids:
            ns.records.pop(vector_id, None)

    async def query(
        self,
        namespace: str,
        vector: list[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        ns = self._require(namespace)
        return self._rank(ns.records.values(), vector, limit, score_threshold)

    async def hybrid_query(
        self,
        namespace: str,
        vector: list[float],
        text: str,
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Fuse the vector ranking with a ranking of chunks sharing query words.

        Word-matching chunks are ordered by how many distinct query words
        they contain, then by similarity.
        """
        ns = self._require(namespace)
        prefetch = limit * 2
        by_vector = self._rank(ns.records.values(), vector, prefetch, score_threshold)

        terms = query_terms(text)
        lexical: list[tuple[int, IndexHit]] = []
        for record in ns.records.values():
            matches = matched_terms(terms, record.text) if terms else 0
            score = cosine_similarity(record.vector, vector)
            if matches and score >= score_threshold:
                lexical.append(
                    (matches, IndexHit(id=record.id, score=score, payload=dict(record.payload)))
                )
        lexical.sort(key=lambda item: (item[0], item[1].score), reverse=True)
        by_words = [hit for _, hit in lexical[:prefetch]]

        return reciprocal_rank_fusion([by_vector, by_words], limit)

    async def discover(
        self,
        namespace: str,
        target: list[float],
        context_pairs: list[ContextPair],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Rank by how many pairs each point sides with positively, then by target similarity."""
        ns = self._require(namespace)
        scored: list[tuple[int, float, VectorRecord]] = []
        for record in ns.records.values():
            rank = sum(
                1
                for pair in context_pairs
                if cosine_similarity(record.vector, pair.positive)
                > cosine_similarity(record.vector, pair.negative)
            )
            score = cosine_similarity(record.vector, target)
            if score >= score_threshold:
                scored.append((rank, score, record))
        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [
            IndexHit(id=record.id, score=score, payload=dict(record.payload))
            for _, score, record in scored[:limit]
        ]

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require(self, namespace: str) -> _Namespace:
        ns = self._namespaces.get(namespace)
        if ns is None:
            raise NotFoundError(
                message=f"Namespace {namespace} does not exist",
                provider_name=self.get_provider_name(),
            )
        return ns

    @staticmethod
    def _rank(records, vector: list[float], limit: int, score_threshold: float) -> list[IndexHit]:
        hits = [
            IndexHit(id=r.id, score=cosine_similarity(r.vector, vector), payload=dict(r.payload))
            for r in records
        ]
        hits = [h for h in hits if h.score >= score_threshold]
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]
