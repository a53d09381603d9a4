"""ChromaDB vector index provider adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IVectorIndexProvider`.  Each namespace is one ChromaDB collection
using cosine distance.  Fully local, no external service required.

Hybrid search fuses a vector ranking with a ``where_document`` word-match
ranking.  ChromaDB has no discovery search; :meth:`discover` raises and the search
pipeline falls back to plain vector search.
"""

from __future__ import annotations

import json
import os
from typing import Any

# Disable ChromaDB telemetry before importing chromadb.  A version
# mismatch between ChromaDB's bundled PostHog client and the installed one
# otherwise logs "capture() takes 1 positional argument" errors.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import posthog

posthog.disabled = True

import chromadb
import structlog

from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider
from chunkwise.models.search import ContextPair
from chunkwise.models.vector import IndexHit, NamespaceStats, VectorRecord
from chunkwise.providers.vector_index.fusion import (
    matched_terms,
    query_terms,
    reciprocal_rank_fusion,
)
from chunkwise.utils.errors import NamespaceConflictError, NotFoundError, VectorIndexError

logger = structlog.get_logger(logger_name=__name__)

_DIMENSION_KEY = "dimension"


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    Vectors are always computed by an :class:`IEmbeddingProvider` and passed
    explicitly, so ChromaDB's built-in embedding is never invoked.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "chunkwise uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


def _to_chroma_metadata(payload: dict[str, Any]) -> dict[str, Any]:
    """Flatten a payload into ChromaDB's scalar-only metadata."""
    metadata: dict[str, Any] = {}
    for key, value in payload.items():
        if key == "text" or value is None:
            continue
        if isinstance(value, (str, int, float, bool)):
            metadata[key] = value
        else:
            metadata[key] = json.dumps(value)
    return metadata


class ChromaDBIndexProvider(IVectorIndexProvider):
    """Vector index backed by ChromaDB with local persistence.

    Parameters
    ----------
    persist_directory:
        Directory ChromaDB writes its SQLite and HNSW files to.
    client:
        Pre-built client; mainly for tests using ``chromadb.EphemeralClient``.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )

    # ------------------------------------------------------------------
    # Namespace lifecycle
    # ------------------------------------------------------------------

    async def heartbeat(self) -> bool:
        try:
            self._client.heartbeat()
        except Exception as exc:
            logger.warning("chromadb_heartbeat_failed", error=str(exc))
            return False
        return True

    async def list_namespaces(self) -> list[str]:
        try:
            collections = self._client.list_collections()
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB list_collections failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        # Older clients return names, newer ones Collection objects.
        return [c if isinstance(c, str) else c.name for c in collections]

    async def namespace_exists(self, namespace: str) -> bool:
        return namespace in await self.list_namespaces()

    async def create_namespace(self, namespace: str, dimension: int) -> None:
        if await self.namespace_exists(namespace):
            raise NamespaceConflictError(
                message=f"Collection {namespace} already exists",
                provider_name=self.get_provider_name(),
            )
        try:
            self._client.create_collection(
                name=namespace,
                metadata={"hnsw:space": "cosine", _DIMENSION_KEY: dimension},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            if "already exists" in str(exc).lower():
                raise NamespaceConflictError(
                    message=f"Collection {namespace} already exists",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise VectorIndexError(
                message=f"ChromaDB create_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_collection_created", namespace=namespace, dimension=dimension)

    async def delete_namespace(self, namespace: str) -> None:
        if not await self.namespace_exists(namespace):
            return
        try:
            self._client.delete_collection(name=namespace)
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete_collection failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("chromadb_collection_deleted", namespace=namespace)

    async def get_namespace(self, namespace: str) -> NamespaceStats | None:
        if not await self.namespace_exists(namespace):
            return None
        collection = self._collection(namespace)
        count = collection.count()
        metadata = collection.metadata or {}
        return NamespaceStats(
            name=namespace,
            vector_count=count,
            indexed_vectors_count=count,
            dimension=metadata.get(_DIMENSION_KEY),
            distance=metadata.get("hnsw:space", "cosine"),
        )

    async def count(self, namespace: str) -> int:
        if not await self.namespace_exists(namespace):
            return 0
        return self._collection(namespace).count()

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------

    async def upsert(self, namespace: str, records: list[VectorRecord]) -> bool:
        if not records:
            return True
        collection = self._collection(namespace)
        metadatas = [_to_chroma_metadata(r.payload) for r in records]
        # ChromaDB rejects empty metadata dicts, so those records go in a
        # second call without the metadatas argument.
        with_meta = [(r, m) for r, m in zip(records, metadatas) if m]
        bare = [r for r, m in zip(records, metadatas) if not m]
        try:
            if with_meta:
                collection.upsert(
                    ids=[r.id for r, _ in with_meta],
                    embeddings=[r.vector for r, _ in with_meta],
                    documents=[r.text for r, _ in with_meta],
                    metadatas=[m for _, m in with_meta],
                )
            if bare:
                collection.upsert(
                    ids=[r.id for r in bare],
                    embeddings=[r.vector for r in bare],
                    documents=[r.text for r in bare],
                )
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("chromadb_upsert", namespace=namespace, count=len(records))
        return True

    async def delete_vectors(self, namespace: str, ids: list[str]) -> None:
        if not ids or not await self.namespace_exists(namespace):
            return
        try:
            self._collection(namespace).delete(ids=ids)
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB delete failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def query(
        self,
        namespace: str,
        vector: list[float],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        hits = self._query(namespace, vector, limit)
        return [h for h in hits if h.score >= score_threshold]

    async def hybrid_query(
        self,
        namespace: str,
        vector: list[float],
        text: str,
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        """Fuse the vector ranking with a ranking of chunks sharing query words.

        ``$contains`` is a case-sensitive substring filter, so candidates
        are fetched for each word in lower and capitalized form and then
        checked for whole-word matches.
        """
        prefetch = limit * 2
        by_vector = [
            h for h in self._query(namespace, vector, prefetch) if h.score >= score_threshold
        ]

        terms = query_terms(text)
        by_words: list[IndexHit] = []
        if terms:
            variants = list(dict.fromkeys(v for t in terms for v in (t, t.capitalize())))
            clauses = [{"$contains": v} for v in variants]
            where_document = clauses[0] if len(clauses) == 1 else {"$or": clauses}
            scored = [
                (matched_terms(terms, h.payload.get("text", "")), h)
                for h in self._query(namespace, vector, prefetch, where_document=where_document)
                if h.score >= score_threshold
            ]
            scored = [item for item in scored if item[0]]
            scored.sort(key=lambda item: (item[0], item[1].score), reverse=True)
            by_words = [h for _, h in scored]

        return reciprocal_rank_fusion([by_vector, by_words], limit)

    async def discover(
        self,
        namespace: str,
        target: list[float],
        context_pairs: list[ContextPair],
        limit: int,
        score_threshold: float = 0.0,
    ) -> list[IndexHit]:
        raise VectorIndexError(
            message="ChromaDB does not support discovery search",
            provider_name=self.get_provider_name(),
        )

    def get_provider_name(self) -> str:
        return "chromadb"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _collection(self, namespace: str):  # noqa: ANN202 - chromadb Collection
        try:
            return self._client.get_collection(
                name=namespace,
                embedding_function=_NoopEmbeddingFunction(),
            )
        except Exception as exc:
            raise NotFoundError(
                message=f"Collection {namespace} not found: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _query(
        self,
        namespace: str,
        vector: list[float],
        limit: int,
        where_document: dict[str, Any] | None = None,
    ) -> list[IndexHit]:
        collection = self._collection(namespace)
        available = collection.count()
        if available == 0 or limit <= 0:
            return []

        kwargs: dict[str, Any] = {
            "query_embeddings": [vector],
            "n_results": min(limit, available),
            "include": ["documents", "metadatas", "distances"],
        }
        if where_document:
            kwargs["where_document"] = where_document
        try:
            results = collection.query(**kwargs)
        except Exception as exc:
            raise VectorIndexError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not results["ids"] or not results["ids"][0]:
            return []

        ids = results["ids"][0]
        documents = results["documents"][0] if results.get("documents") else [""] * len(ids)
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [1.0] * len(ids)

        hits: list[IndexHit] = []
        for vector_id, doc_text, meta, distance in zip(ids, documents, metadatas, distances):
            similarity = max(0.0, min(1.0, 1.0 - distance))
            payload = dict(meta or {})
            payload["text"] = doc_text or ""
            hits.append(IndexHit(id=vector_id, score=similarity, payload=payload))
        return hits
