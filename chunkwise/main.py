"""chunkwise service assembly.

Wires providers and services together via dependency injection.  Each
``_build_*`` helper picks one implementation of an interface from
:class:`Settings`; the public ``build_*`` functions return ready-to-use
services.  Provider and loader modules are imported inside the helpers so
only the selected backend's client library is loaded.

Called without settings, the factories resolve them from
``config/config.yaml`` layered under the environment (see
:func:`chunkwise.config.loader.resolve_settings`).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from chunkwise.config.loader import resolve_settings
from chunkwise.config.settings import Settings
from chunkwise.models.search import SearchOptions
from chunkwise.providers.document_vectors.sqlite_document_vector_index import (
    SQLiteDocumentVectorIndex,
)
from chunkwise.providers.storage.local_document_storage import LocalDocumentStorage
from chunkwise.services.ingestion.document_converter import DocumentConverter
from chunkwise.services.similarity_search import SimilaritySearchPipeline
from chunkwise.services.vector_store_service import VectorStoreOrchestrator
from chunkwise.utils.errors import ConfigurationError
from chunkwise.utils.logging import configure_logging, get_logger
from chunkwise.utils.tokenizer import TokenCounter

if TYPE_CHECKING:
    from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
    from chunkwise.interfaces.reranker_provider import IRerankerProvider
    from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the first available embedding provider.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> FastEmbed
    (local, always available once installed).
    """
    if app_settings.openai_api_key:
        from chunkwise.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=app_settings)
        if provider.is_available():
            return provider

    from chunkwise.providers.embedding.fastembed_embedding_provider import (
        FastEmbedEmbeddingProvider,
    )

    return FastEmbedEmbeddingProvider(
        model_name=app_settings.fastembed_model,
        max_chunk_length=app_settings.embedding_max_chunk_length,
    )


def _build_vector_index(app_settings: Settings) -> IVectorIndexProvider:
    """Return the vector index named by ``VECTOR_DB``.

    Raises
    ------
    ConfigurationError
        If ``VECTOR_DB`` names an unknown backend.
    """
    backend = app_settings.vector_db.strip().lower()
    if backend == "qdrant":
        from chunkwise.providers.vector_index.qdrant_provider import QdrantIndexProvider

        return QdrantIndexProvider(
            url=app_settings.qdrant_endpoint,
            api_key=app_settings.qdrant_api_key,
            timeout=app_settings.qdrant_timeout,
        )
    if backend == "chromadb":
        from chunkwise.providers.vector_index.chromadb_provider import ChromaDBIndexProvider

        return ChromaDBIndexProvider(persist_directory=app_settings.chromadb_persist_dir)
    if backend == "memory":
        from chunkwise.providers.vector_index.memory_provider import InMemoryIndexProvider

        return InMemoryIndexProvider()
    raise ConfigurationError(
        message=f"Unknown vector database {app_settings.vector_db!r}. Valid: memory, chromadb, qdrant"
    )


def _build_reranker(app_settings: Settings) -> IRerankerProvider | None:
    """Return the cross-encoder reranker, or ``None`` when disabled."""
    if not app_settings.reranker_enabled:
        return None
    from chunkwise.providers.rerank.fastembed_reranker import FastEmbedReranker

    return FastEmbedReranker(model_name=app_settings.reranker_model)


# ---------------------------------------------------------------------------
# Service assembly
# ---------------------------------------------------------------------------


def build_vector_store_service(
    app_settings: Settings | None = None,
    vector_index: IVectorIndexProvider | None = None,
    embedding_provider: IEmbeddingProvider | None = None,
) -> VectorStoreOrchestrator:
    """Assemble a :class:`VectorStoreOrchestrator` from settings.

    *vector_index* and *embedding_provider* override the settings-based
    selection so one index instance can be shared with a search pipeline.
    """
    app_settings = app_settings or resolve_settings()
    vector_index = vector_index or _build_vector_index(app_settings)
    embedding_provider = embedding_provider or _build_embedding_provider(app_settings)
    service = VectorStoreOrchestrator(
        vector_index=vector_index,
        embedding_provider=embedding_provider,
        document_storage=LocalDocumentStorage(app_settings.storage_dir),
        document_vectors=SQLiteDocumentVectorIndex(app_settings.document_vectors_db_path),
        settings=app_settings,
        token_counter=TokenCounter(app_settings.tokenizer_model or None),
    )
    _logger.info(
        "vector_store_service_built",
        vector_index=vector_index.get_provider_name(),
        embedding=embedding_provider.get_provider_name(),
    )
    return service


def build_search_service(
    app_settings: Settings | None = None,
    vector_index: IVectorIndexProvider | None = None,
) -> SimilaritySearchPipeline:
    """Assemble a :class:`SimilaritySearchPipeline` from settings."""
    app_settings = app_settings or resolve_settings()
    return SimilaritySearchPipeline(
        vector_index=vector_index or _build_vector_index(app_settings),
        reranker=_build_reranker(app_settings),
        default_options=SearchOptions(
            similarity_threshold=app_settings.search_similarity_threshold,
            top_n=app_settings.search_top_n,
            rerank=app_settings.reranker_enabled,
            strategy=app_settings.search_strategy,
        ),
    )


def build_document_converter(app_settings: Settings | None = None) -> DocumentConverter:
    """Assemble a :class:`DocumentConverter` with the PDF, DOCX and text loaders."""
    app_settings = app_settings or resolve_settings()
    from chunkwise.providers.loaders import DocxLoader, PDFLoader, TextLoader

    return DocumentConverter(
        loaders=[PDFLoader(), DocxLoader(), TextLoader()],
        storage=LocalDocumentStorage(app_settings.storage_dir),
        token_counter=TokenCounter(app_settings.tokenizer_model or None),
    )


def setup_logging(app_settings: Settings | None = None) -> None:
    """Configure structlog from settings; JSON output in production."""
    app_settings = app_settings or resolve_settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )
