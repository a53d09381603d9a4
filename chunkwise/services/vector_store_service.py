"""Vector-store orchestration: namespaces, ingestion, deletion and stats.

The :class:`VectorStoreOrchestrator` coordinates four injected
collaborators without any of them knowing about each other:

    1. IEmbeddingProvider   -- turns chunk text into vectors
    2. IVectorIndexProvider -- stores and searches vectors per namespace
    3. IDocumentStorage     -- caches vectors per source file
    4. IDocumentVectorIndex -- remembers which vectors belong to which document

Ingesting a document runs **split -> embed -> create namespace -> upsert ->
cache -> index**.  Embedding and upsert batches run strictly one after the
other; an upsert batch is retried with exponential backoff before the
whole ingest is reported as failed.  Batches committed before a failure
stay in the index.

Every public method returns a structured result instead of raising for
backend failures; the failure is logged with its context first.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import structlog

from chunkwise.config.settings import Settings
from chunkwise.models.document import DocumentRecord
from chunkwise.models.results import (
    AddDocumentResult,
    DeleteNamespaceResult,
    DeleteResult,
    NamespaceStatsResult,
    ResetResult,
)
from chunkwise.models.vector import CachedVectors, VectorRecord
from chunkwise.services.chunking.text_splitter import TextSplitter
from chunkwise.utils.concurrency import map_namespaces
from chunkwise.utils.errors import (
    ChunkwiseError,
    EmbeddingError,
    IndexUnavailableError,
    InputError,
    NamespaceConflictError,
    UpsertError,
)
from chunkwise.utils.tokenizer import TokenCounter

if TYPE_CHECKING:
    from chunkwise.interfaces.document_storage import IDocumentStorage
    from chunkwise.interfaces.document_vector_index import IDocumentVectorIndex
    from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
    from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider

logger = structlog.get_logger(logger_name=__name__)

SleepFn = Callable[[float], Awaitable[Any]]


class VectorStoreOrchestrator:
    """Namespace lifecycle and document ingestion against one vector index.

    Parameters
    ----------
    vector_index:
        Backend holding the namespaces.
    embedding_provider:
        Embeds chunk text during ingestion.
    document_storage:
        Vector cache keyed by source file path.
    document_vectors:
        Document-id to vector-id index used for deletion.
    settings:
        Chunking defaults, batch sizes and retry policy.
    token_counter:
        Passed to token-measured splitters.
    sleep:
        Awaitable used between upsert retries; tests pass a no-op.
    """

    def __init__(
        self,
        vector_index: IVectorIndexProvider,
        embedding_provider: IEmbeddingProvider,
        document_storage: IDocumentStorage,
        document_vectors: IDocumentVectorIndex,
        settings: Settings | None = None,
        token_counter: TokenCounter | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._index = vector_index
        self._embedder = embedding_provider
        self._storage = document_storage
        self._document_vectors = document_vectors
        self._settings = settings or Settings()
        self._token_counter = token_counter
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def add_document(
        self,
        namespace: str,
        document: DocumentRecord,
        source_path: str | None = None,
        skip_cache: bool = False,
        doc_id: str | None = None,
    ) -> AddDocumentResult:
        """Chunk, embed and upsert *document* into *namespace*.

        Parameters
        ----------
        namespace:
            Target namespace; created on first use with the dimension of
            the first embedded vector.
        document:
            The converted document.  Its ``page_content`` is chunked and
            every other field is copied into each vector's payload.
        source_path:
            Path of the source file.  Keys the vector cache.
        skip_cache:
            Reuse vectors cached for *source_path* instead of embedding
            again, when a cache exists.
        doc_id:
            Key in the document-vector index; defaults to ``document.id``.
        """
        doc_id = doc_id or document.id
        log = logger.bind(namespace=namespace, doc_id=doc_id)

        if not namespace:
            return AddDocumentResult(vectorized=False, error="namespace required")
        if not document.page_content:
            log.warning("add_document_empty_content")
            return AddDocumentResult(vectorized=False, error="Document has no content to vectorize")

        try:
            await self._connect()

            if skip_cache and source_path:
                cached = self._storage.read_cached_vectors(source_path)
                if cached.exists:
                    return await self._add_cached(namespace, cached, doc_id)

            return await self._add_fresh(namespace, document, source_path, doc_id)
        except ChunkwiseError as exc:
            log.error("add_document_failed", error=str(exc))
            return AddDocumentResult(vectorized=False, error=exc.message)
        except Exception as exc:
            log.error("add_document_failed", error=str(exc), exc_type=type(exc).__name__)
            return AddDocumentResult(vectorized=False, error=str(exc))

    async def _add_fresh(
        self,
        namespace: str,
        document: DocumentRecord,
        source_path: str | None,
        doc_id: str,
    ) -> AddDocumentResult:
        splitter = self.build_text_splitter(document)
        chunks = splitter.split_text(document.page_content)
        logger.info(
            "document_chunked",
            namespace=namespace,
            doc_id=doc_id,
            chunks=len(chunks),
            strategy=splitter.strategy.value,
        )
        if not chunks:
            return AddDocumentResult(vectorized=False, error="Document produced no chunks")

        metadata = document.payload_metadata()
        records: list[VectorRecord] = []
        batch_size = self._settings.embed_batch_size
        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            vectors = await self._embedder.embed(batch)
            if not vectors:
                raise EmbeddingError(
                    message=f"Failed to embed batch {start // batch_size + 1}",
                    provider_name=self._embedder.get_provider_name(),
                )
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    message=(
                        f"Embedding batch {start // batch_size + 1} returned "
                        f"{len(vectors)} vectors for {len(batch)} chunks"
                    ),
                    provider_name=self._embedder.get_provider_name(),
                )
            for text, vector in zip(batch, vectors):
                records.append(
                    VectorRecord(
                        id=str(uuid.uuid4()),
                        vector=vector,
                        payload={**metadata, "text": text},
                    )
                )

        await self._ensure_namespace(namespace, len(records[0].vector))
        await self._upsert_batches(namespace, records)

        if source_path:
            self._storage.write_cached_vectors(self._cache_batches(records), source_path)

        await self._document_vectors.bulk_insert([(doc_id, r.id) for r in records])
        logger.info("document_vectorized", namespace=namespace, doc_id=doc_id, vectors=len(records))
        return AddDocumentResult(
            vectorized=True,
            chunk_count=len(records),
            vector_ids=[r.id for r in records],
        )

    async def _add_cached(
        self,
        namespace: str,
        cached: CachedVectors,
        doc_id: str,
    ) -> AddDocumentResult:
        """Replay cached vectors under fresh ids; nothing is embedded."""
        if not cached.chunks or not cached.chunks[0]:
            raise InputError(message="Invalid cache result: no chunks found")

        first = cached.chunks[0][0]
        dimension = len(first.get("vector") or first.get("values") or [])
        if not dimension:
            raise InputError(message="Invalid cache result: first item has no vector")
        await self._ensure_namespace(namespace, dimension)

        vector_ids: list[str] = []
        skipped = 0
        for batch in cached.chunks:
            records: list[VectorRecord] = []
            for item in batch:
                payload = dict(item.get("payload") or {})
                if "id" not in payload:
                    skipped += 1
                    continue
                payload.pop("id")
                records.append(
                    VectorRecord(
                        id=str(uuid.uuid4()),
                        vector=item.get("vector") or item.get("values"),
                        payload=payload,
                    )
                )
            if records:
                await self._upsert_batches(namespace, records)
                vector_ids.extend(r.id for r in records)

        if skipped:
            logger.warning(
                "cached_vectors_skipped",
                namespace=namespace,
                doc_id=doc_id,
                skipped=skipped,
                reason="payload has no id marker",
            )

        await self._document_vectors.bulk_insert([(doc_id, vid) for vid in vector_ids])
        logger.info("document_vectorized_from_cache", namespace=namespace, doc_id=doc_id, vectors=len(vector_ids))
        return AddDocumentResult(
            vectorized=True,
            chunk_count=len(vector_ids),
            vector_ids=vector_ids,
            from_cache=True,
        )

    def build_text_splitter(self, document: DocumentRecord) -> TextSplitter:
        """Return the splitter ingestion uses for *document*.

        The configured chunk size is capped at the embedder's maximum
        input length before the splitter is built.
        """
        chunk_size = TextSplitter.determine_max_chunk_size(
            self._settings.text_splitter_chunk_size,
            self._embedder.get_max_chunk_length(),
        )
        return TextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=self._settings.text_splitter_chunk_overlap,
            min_chunk_size=self._settings.text_splitter_min_chunk_size,
            default_strategy=self._settings.text_splitter_default_strategy,
            chunk_header_meta=TextSplitter.build_header_meta(document.header_source()),
            split_by_filename=document.title or None,
            content_sample=document.page_content[:2000],
            token_counter=self._token_counter,
        )

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_document(self, namespace: str, doc_id: str) -> DeleteResult:
        """Remove every vector recorded for *doc_id* from *namespace*.

        A missing namespace or an unknown document is a successful no-op.
        """
        log = logger.bind(namespace=namespace, doc_id=doc_id)
        try:
            await self._connect()
            if not await self._index.namespace_exists(namespace):
                return DeleteResult(success=True, removed=0)

            vector_ids = await self._document_vectors.vector_ids_for(doc_id)
            if not vector_ids:
                return DeleteResult(success=True, removed=0)

            batch_size = self._settings.delete_batch_size
            for start in range(0, len(vector_ids), batch_size):
                await self._index.delete_vectors(namespace, vector_ids[start : start + batch_size])

            await self._document_vectors.delete_for_document(doc_id)
            log.info("document_deleted", removed=len(vector_ids))
            return DeleteResult(success=True, removed=len(vector_ids))
        except ChunkwiseError as exc:
            log.error("delete_document_failed", error=str(exc))
            return DeleteResult(success=False, error=exc.message)
        except Exception as exc:
            log.error("delete_document_failed", error=str(exc), exc_type=type(exc).__name__)
            return DeleteResult(success=False, error=str(exc))

    async def delete_namespace(self, namespace: str) -> DeleteNamespaceResult:
        if not namespace:
            return DeleteNamespaceResult(success=False, message="namespace required")
        try:
            await self._connect()
            if not await self._index.namespace_exists(namespace):
                return DeleteNamespaceResult(
                    success=False,
                    message="Namespace by that name does not exist.",
                )
            vector_count = await self._index.count(namespace)
            await self._index.delete_namespace(namespace)
        except ChunkwiseError as exc:
            logger.error("delete_namespace_failed", namespace=namespace, error=str(exc))
            return DeleteNamespaceResult(success=False, message=exc.message)
        except Exception as exc:
            logger.error("delete_namespace_failed", namespace=namespace, error=str(exc))
            return DeleteNamespaceResult(success=False, message=str(exc))

        logger.info("namespace_deleted", namespace=namespace, vectors=vector_count)
        return DeleteNamespaceResult(
            success=True,
            message=f"Namespace {namespace} was deleted along with {vector_count} vectors.",
            deleted_vectors=vector_count,
        )

    async def reset_all(self) -> ResetResult:
        """Delete every namespace, carrying on past individual failures."""
        try:
            await self._connect()
            namespaces = await self._index.list_namespaces()
        except ChunkwiseError as exc:
            logger.error("reset_failed", error=str(exc))
            return ResetResult(reset=False)

        deleted: list[str] = []
        failed: list[str] = []
        for namespace in namespaces:
            try:
                await self._index.delete_namespace(namespace)
                deleted.append(namespace)
            except Exception as exc:
                logger.warning("reset_namespace_failed", namespace=namespace, error=str(exc))
                failed.append(namespace)

        logger.info("vector_index_reset", deleted=len(deleted), failed=len(failed))
        return ResetResult(reset=True, deleted_namespaces=deleted, failed=failed)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    async def heartbeat(self) -> bool:
        return await self._index.heartbeat()

    async def has_namespace(self, namespace: str) -> bool:
        if not namespace:
            return False
        try:
            return await self._index.namespace_exists(namespace)
        except ChunkwiseError as exc:
            logger.warning("namespace_exists_check_failed", namespace=namespace, error=str(exc))
            return False

    async def namespace_count(self, namespace: str) -> int:
        """Return the vector count of *namespace*; 0 when absent or unreachable."""
        try:
            if not await self._index.namespace_exists(namespace):
                return 0
            return await self._index.count(namespace)
        except ChunkwiseError as exc:
            logger.warning("namespace_count_failed", namespace=namespace, error=str(exc))
            return 0

    async def namespace_stats(self, namespace: str) -> NamespaceStatsResult:
        if not namespace:
            return NamespaceStatsResult(success=False, error="namespace required")
        try:
            await self._connect()
            stats = await self._index.get_namespace(namespace)
        except ChunkwiseError as exc:
            logger.error("namespace_stats_failed", namespace=namespace, error=str(exc))
            return NamespaceStatsResult(success=False, error=exc.message)
        if stats is None:
            return NamespaceStatsResult(
                success=False,
                error="Namespace by that name does not exist.",
            )
        return NamespaceStatsResult(success=True, stats=stats)

    async def total_vectors(self) -> int:
        """Sum the vector counts of every namespace.

        Counts are fetched concurrently, at most ``stats_fan_out`` at a
        time.  A namespace whose count fails contributes 0.
        """
        try:
            namespaces = await self._index.list_namespaces()
        except ChunkwiseError as exc:
            logger.warning("total_vectors_failed", error=str(exc))
            return 0

        counts = await map_namespaces(
            namespaces, self._index.count, fan_out=self._settings.stats_fan_out
        )
        total = 0
        for namespace, count in counts.items():
            if isinstance(count, BaseException):
                logger.warning("namespace_count_failed", namespace=namespace, error=str(count))
                continue
            total += count
        return total

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _connect(self) -> None:
        if not await self._index.heartbeat():
            raise IndexUnavailableError(
                message="Vector index::Invalid Heartbeat received - is the instance online?",
                provider_name=self._index.get_provider_name(),
            )

    async def _ensure_namespace(self, namespace: str, dimension: int) -> None:
        if await self._index.namespace_exists(namespace):
            return
        try:
            await self._index.create_namespace(namespace, dimension)
        except NamespaceConflictError:
            logger.debug("namespace_created_concurrently", namespace=namespace)

    async def _upsert_batches(self, namespace: str, records: list[VectorRecord]) -> None:
        batch_size = self._settings.upsert_batch_size
        for start in range(0, len(records), batch_size):
            await self._upsert_with_retry(namespace, records[start : start + batch_size])

    async def _upsert_with_retry(self, namespace: str, batch: list[VectorRecord]) -> None:
        max_retries = max(1, self._settings.upsert_max_retries)
        base_delay = self._settings.upsert_retry_base_delay
        last_error = ""
        for attempt in range(1, max_retries + 1):
            try:
                if await self._index.upsert(namespace, batch):
                    return
                last_error = "upsert did not complete"
            except ChunkwiseError as exc:
                last_error = exc.message
            except Exception as exc:
                last_error = str(exc)

            if attempt < max_retries:
                delay = base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "upsert_retry",
                    namespace=namespace,
                    attempt=attempt,
                    max_retries=max_retries,
                    delay=delay,
                    error=last_error,
                )
                await self._sleep(delay)

        raise UpsertError(
            message=f"Failed to insert batch after {max_retries} attempts: {last_error}",
            provider_name=self._index.get_provider_name(),
        )

    def _cache_batches(self, records: list[VectorRecord]) -> list[list[dict[str, Any]]]:
        batch_size = self._settings.upsert_batch_size
        return [
            [{"vector": r.vector, "payload": r.payload} for r in records[start : start + batch_size]]
            for start in range(0, len(records), batch_size)
        ]
