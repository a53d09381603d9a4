"""Similarity search over one namespace.

Pipeline: **embed query -> strategy search -> threshold / pin filter ->
rerank -> curate sources**.

Three strategies are available: plain vector search, hybrid (vector
and word-match rankings merged by reciprocal rank fusion) and discovery (vector
search steered by positive/negative context pairs).  Every layer above
plain vector search degrades gracefully: a failing hybrid or discovery
query is retried as a vector query with the same parameters, and a failing
reranker leaves the filtered vector ordering in place.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog

from chunkwise.models.search import SearchOptions, SearchResult, SearchStrategy
from chunkwise.models.vector import IndexHit
from chunkwise.utils.errors import ChunkwiseError

if TYPE_CHECKING:
    from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
    from chunkwise.interfaces.reranker_provider import IRerankerProvider
    from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider

logger = structlog.get_logger(logger_name=__name__)

NO_DOCUMENTS_MESSAGE = "Invalid query - no documents found for workspace!"
INVALID_REQUEST_MESSAGE = (
    "Invalid request to similarity search: namespace, query and embedder are required."
)


def source_identifier(payload: dict[str, Any] | None) -> str:
    """Return the identifier used to match a hit against pinned documents.

    Documents without both a title and a published date cannot be pinned,
    so they get a random identifier that never matches.
    """
    payload = payload or {}
    title = payload.get("title")
    published = payload.get("published")
    if not title or not published:
        return str(uuid.uuid4())
    return f"title:{title}-timestamp:{published}"


def curate_sources(sources: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten source dicts, unwrapping a nested ``metadata`` key if present."""
    documents: list[dict[str, Any]] = []
    for source in sources:
        if not source:
            continue
        metadata = source["metadata"] if "metadata" in source else source
        documents.append(dict(metadata))
    return documents


class SimilaritySearchPipeline:
    """Runs similarity searches against a vector index.

    Parameters
    ----------
    vector_index:
        Backend holding the namespaces.
    reranker:
        Optional second-pass scorer; without one, ``rerank=True`` is a
        no-op.
    default_options:
        Options used when a search passes none.
    """

    def __init__(
        self,
        vector_index: IVectorIndexProvider,
        reranker: IRerankerProvider | None = None,
        default_options: SearchOptions | None = None,
    ) -> None:
        self._index = vector_index
        self._reranker = reranker
        self._default_options = default_options or SearchOptions()

    async def search(
        self,
        namespace: str,
        query: str,
        embedder: IEmbeddingProvider | None,
        options: SearchOptions | None = None,
    ) -> SearchResult:
        """Return the best matching chunk texts in *namespace* for *query*.

        Never raises for backend failures: the returned
        :class:`SearchResult` carries a ``message`` instead.
        """
        options = options or self._default_options
        if not namespace or not query or embedder is None:
            return SearchResult(message=INVALID_REQUEST_MESSAGE)

        log = logger.bind(namespace=namespace, strategy=options.strategy.value)
        try:
            if not await self._index.namespace_exists(namespace):
                return SearchResult(message=NO_DOCUMENTS_MESSAGE)
            query_vector = await embedder.embed_single(query)
            hits, used = await self._run_strategy(namespace, query, query_vector, options)
        except ChunkwiseError as exc:
            log.error("similarity_search_failed", error=str(exc))
            return SearchResult(message=exc.message)
        except Exception as exc:
            log.error("similarity_search_failed", error=str(exc), exc_type=type(exc).__name__)
            return SearchResult(message=str(exc))

        documents = self._filter(hits, options)

        if options.rerank and self._reranker is not None and documents:
            try:
                reranked = await self._reranker.rerank(query, documents, top_k=options.top_n)
                return SearchResult(
                    context_texts=[doc.get("text", "") for doc in reranked],
                    sources=curate_sources(reranked),
                    strategy=used,
                )
            except Exception as exc:
                log.warning("rerank_failed_using_original_order", error=str(exc))

        documents = documents[: options.top_n]
        return SearchResult(
            context_texts=[doc.get("text", "") for doc in documents],
            sources=curate_sources(documents),
            strategy=used,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _run_strategy(
        self,
        namespace: str,
        query: str,
        query_vector: list[float],
        options: SearchOptions,
    ) -> tuple[list[IndexHit], SearchStrategy]:
        strategy = options.strategy
        if strategy == SearchStrategy.DISCOVERY and not options.context_pairs:
            strategy = SearchStrategy.VECTOR

        try:
            if strategy == SearchStrategy.DISCOVERY:
                hits = await self._index.discover(
                    namespace,
                    query_vector,
                    options.context_pairs,
                    limit=options.top_n,
                    score_threshold=options.similarity_threshold,
                )
                return hits, strategy
            if strategy == SearchStrategy.HYBRID:
                hits = await self._index.hybrid_query(
                    namespace,
                    query_vector,
                    query,
                    limit=options.top_n,
                    score_threshold=options.similarity_threshold,
                )
                return hits, strategy
        except Exception as exc:
            logger.warning(
                "search_strategy_failed_falling_back",
                namespace=namespace,
                strategy=strategy.value,
                error=str(exc),
            )

        hits = await self._index.query(
            namespace,
            query_vector,
            limit=options.top_n,
            score_threshold=options.similarity_threshold,
        )
        return hits, SearchStrategy.VECTOR

    @staticmethod
    def _filter(hits: list[IndexHit], options: SearchOptions) -> list[dict[str, Any]]:
        """Drop hits under the threshold or belonging to pinned documents."""
        pinned = set(options.filter_identifiers)
        documents: list[dict[str, Any]] = []
        for hit in hits:
            if hit.score < options.similarity_threshold:
                continue
            if pinned and source_identifier(hit.payload) in pinned:
                logger.info(
                    "source_filtered_pinned",
                    msg="A source was filtered from context as its parent document is pinned.",
                    vector_id=hit.id,
                )
                continue
            documents.append(
                {
                    **hit.payload,
                    "id": hit.id,
                    "score": hit.score,
                    "text": hit.payload.get("text", ""),
                }
            )
        return documents
