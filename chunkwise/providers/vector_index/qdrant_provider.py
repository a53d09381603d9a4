"""Qdrant vector index provider adapter.

Wraps ``qdrant_client.AsyncQdrantClient`` to implement
:class:`IVectorIndexProvider`.  Each namespace is one Qdrant collection
with cosine distance, tuned HNSW / optimizer settings and a full-text
payload index on ``text`` that powers the word-match prefetch of hybrid
search.  Vector, hybrid (RRF fusion) and discovery searches all go through
the universal ``query_points`` endpoint.
"""

from __future__ import annotations

from typing import Any

import structlog
from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import UnexpectedResponse

from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider
from chunkwise.models.search import ContextPair
from chunkwise.models.vector import IndexHit, NamespaceStats, VectorRecord
from chunkwise.providers.vector_index.fusion import cosine_similarity, query_terms
from chunkwise.utils.errors import NamespaceConflictError, VectorIndexError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_FIELD = "text"

_OPTIMIZERS_CONFIG = models.OptimizersConfigDiff(
    max_segment_size=20000,
    memmap_threshold=50000,
    indexing_threshold=20000,
    flush_interval_sec=5,
    max_optimization_threads=1,
)
_HNSW_CONFIG = models.HnswConfigDiff(
    m=16,
    ef_construct=100,
    full_scan_threshold=10000,
    max_indexing_threads=0,
    on_disk=False,
)
_WAL_CONFIG = models.WalConfigDiff(wal_capacity_mb=32, wal_segments_ahead=0)


class QdrantIndexProvider(IVectorIndexProvider):
    """Vector index backed by a Qdrant server.

    Parameters
    ----------
    url:
        Qdrant REST endpoint, e.g. ``http://localhost:6333``.
    api_key:
        API key for Qdrant Cloud; empty for an open local server.
    timeout:
        Request timeout in seconds.
    client:
        Pre-built client; used by tests to inject a mock.
    """

    def __init__(
        self,
        url: str = "http://localhost:6333",
        api_key: str = "",
        timeout: int = 300,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        self._url = url
        self._client = client or AsyncQdrantClient(
            url=url,
            api_key=api_key or None,
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Namespace lifecycle
    # ------------------------------------------------------------------

    async def heartbeat(self) -> bool:
        try:
            await self._client.get_collections()
        except Exception as exc:
            logger.warning("qdrant_heartbeat_failed", url=self._url, error=str(exc))
            return False
        return True

    async def list_namespaces(self) -> list[str]:
        try:
            response = await self._client.get_collections()
        except Exception as exc:
            raise self._wrap("get_collections", exc) from exc
        return [c.name for c in response.collections]

    async def namespace_exists(self, namespace: str) -> bool:
        try:
            return await self._client.collection_exists(collection_name=namespace)
        except Exception as exc:
            raise self._wrap("collection_exists", exc) from exc

    async def create_namespace(self, namespace: str, dimension: int) -> None:
        try:
            await self._client.create_collection(
                collection_name=namespace,
                vectors_config=models.VectorParams(size=dimension, distance=models.Distance.COSINE),
                optimizers_config=_OPTIMIZERS_CONFIG,
                hnsw_config=_HNSW_CONFIG,
                wal_config=_WAL_CONFIG,
            )
        except UnexpectedResponse as exc:
            if exc.status_code == 409 or "already exists" in str(exc).lower():
                raise NamespaceConflictError(
                    message=f"Collection {namespace} already exists",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise self._wrap("create_collection", exc) from exc
        except Exception as exc:
            raise self._wrap("create_collection", exc) from exc

        try:
            await self._client.create_payload_index(
                collection_name=namespace,
                field_name=_TEXT_FIELD,
                field_schema=models.TextIndexParams(
                    type=models.TextIndexType.TEXT,
                    tokenizer=models.TokenizerType.WORD,
                    lowercase=True,
                ),
            )
        except Exception as exc:
            # Hybrid search degrades to vector search without the index.
            logger.warning("qdrant_text_index_failed", namespace=namespace, error=str(exc))

        logger.info("qdrant_collection_created", namespace=namespace, dimension=dimension)

    async def delete_namespace(self, namespace: str) -> None:
        try:
            await self._client.delete_collection(collection_name=namespace)
        except Exception as exc:
            raise self._wrap("delete_collection", exc) from exc
        logger.info("qdrant_collection_deleted", namespace=namespace)

    async def get_namespace(self, namespace: str) -> NamespaceStats | None:
        if not await self.namespace_exists(namespace):
            return None
        try:
            info = await self._client.get_collection(collection_name=namespace)
            count = await self.count(namespace)
        except VectorIndexError:
            raise
        except Exception as exc:
            raise self._wrap("get_collection", exc) from exc

        params = info.config.params.vectors
        dimension = getattr(params, "size", None)
        distance = getattr(params, "distance", None)
        return NamespaceStats(
            name=namespace,
            vector_count=count,
            indexed_vectors_count=info.indexed_vectors_count,
            dimension=dimension,
            distance=str(getattr(distance, "value", distance or "cosine")).lower(),
            status=str(getattr(info.status, "value", info.status)),
        )

    async def count(self, namespace: str) -> int:
        try:
            result = await self._client.count(collection_name=namespace, exact=True)
        except Exception as exc:
            raise self._wrap("count", exc) from exc
        return result.count

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    async def upsert(self, namespace: str, records: list[VectorRecord]) -> bool:
        points = [
            models.PointStruct(id=r.id, vector=r.vector, payload=r.payload)
            for r in records
        ]
        try:
            result = await self._client.upsert(collection_name=namespace, points=points, wait=True)
        except Exception as exc:
            raise self._wrap("upsert", exc) from exc
        completed = result.status == models.UpdateStatus.COMPLETED
        if not completed:
            logger.warning(
                "qdrant_upsert_not_completed",
                namespace=namespace,
                status=str(result.status),
                points=len(points),
            )
        return completed

    async def delete_vectors(self, namespace: str, ids: list[str]) -> None:
        if not ids:
            return
        try:
            await self._client.delete(
                collection_name=namespace,
                points_selector=models.PointIdsList(points=ids),
                wait=True,
            )
        except Exception as exc:
            raise self._wrap("delete", exc) from exc

    async def query(
        self,
        namespace: str,
        vector: list[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        return await self._query_points(
            namespace,
            query=vector,
            limit=limit,
            score_threshold=score_threshold,
        )

    async def hybrid_query(
        self,
        namespace: str,
        vector: list[float],
        text: str,
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Fuse a vector prefetch and a word-match prefetch with server-side RRF.

        The RRF score only orders the points; returned hits carry the cosine
        similarity recomputed from the point vectors.
        """
        terms = query_terms(text)
        if not terms:
            return await self.query(namespace, vector, limit, score_threshold)

        word_filter = models.Filter(
            should=[
                models.FieldCondition(key=_TEXT_FIELD, match=models.MatchText(text=term))
                for term in terms
            ]
        )
        prefetch = [
            models.Prefetch(query=vector, limit=limit * 2, score_threshold=score_threshold),
            models.Prefetch(
                query=vector,
                filter=word_filter,
                limit=limit * 2,
                score_threshold=score_threshold,
            ),
        ]
        return await self._query_points(
            namespace,
            query=models.FusionQuery(fusion=models.Fusion.RRF),
            limit=limit,
            prefetch=prefetch,
            rescore_against=vector,
        )

    async def discover(
        self,
        namespace: str,
        target: list[float],
        context_pairs: list[ContextPair],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        discover_query = models.DiscoverQuery(
            discover=models.DiscoverInput(
                target=target,
                context=[
                    models.ContextPair(positive=pair.positive, negative=pair.negative)
                    for pair in context_pairs
                ],
            )
        )
        return await self._query_points(
            namespace,
            query=discover_query,
            limit=limit,
            score_threshold=score_threshold,
        )

    def get_provider_name(self) -> str:
        return "qdrant"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _query_points(
        self,
        namespace: str,
        query: Any,
        limit: int,
        score_threshold: float | None = None,
        prefetch: list[models.Prefetch] | None = None,
        rescore_against: list[float] | None = None,
    ) -> list[IndexHit]:
        kwargs: dict[str, Any] = {
            "collection_name": namespace,
            "query": query,
            "limit": limit,
            "with_payload": True,
        }
        if score_threshold is not None:
            kwargs["score_threshold"] = score_threshold
        if prefetch:
            kwargs["prefetch"] = prefetch
        if rescore_against is not None:
            kwargs["with_vectors"] = True
        try:
            response = await self._client.query_points(**kwargs)
        except Exception as exc:
            raise self._wrap("query_points", exc) from exc

        hits: list[IndexHit] = []
        for point in response.points:
            score = point.score
            if rescore_against is not None and isinstance(point.vector, list):
                score = cosine_similarity(point.vector, rescore_against)
            hits.append(IndexHit(id=str(point.id), score=score, payload=dict(point.payload or {})))
        return hits

    def _wrap(self, operation: str, exc: Exception) -> VectorIndexError:
        return VectorIndexError(
            message=f"Qdrant {operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )
