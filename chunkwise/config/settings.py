"""Application settings loaded from environment variables via pydantic-settings.

Two sources, in priority order:

  1. Environment variables - e.g. ``QDRANT_ENDPOINT=http://localhost:6333``
  2. ``.env`` file in the working directory

Field ``qdrant_endpoint`` maps to ``QDRANT_ENDPOINT``; defaults apply when
neither source sets a value.  Empty strings mean "not configured": the
factories in ``chunkwise/main.py`` skip providers whose keys are empty.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """chunkwise settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Vector index ===
    # "memory" | "chromadb" | "qdrant"
    vector_db: str = "memory"
    qdrant_endpoint: str = "http://localhost:6333"
    qdrant_api_key: str = ""
    qdrant_timeout: int = 300
    chromadb_persist_dir: str = "./data/chromadb"

    # === Embeddings ===
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = ""
    fastembed_model: str = "BAAI/bge-small-en-v1.5"
    # 0 = use the provider's own limit
    embedding_max_chunk_length: int = 0

    # === Reranking ===
    reranker_model: str = "Xenova/ms-marco-MiniLM-L-6-v2"
    reranker_enabled: bool = True

    # === Text splitting ===
    tokenizer_model: str = "gpt2"
    text_splitter_chunk_size: int = 1000
    text_splitter_chunk_overlap: int = 20
    # Ingestion keeps every non-empty chunk; direct TextSplitter callers
    # get the splitter's own default of 100.
    text_splitter_min_chunk_size: int = 1
    # Strategy for documents whose name and content give no hint:
    # "recursive" or "semantic"
    text_splitter_default_strategy: str = "recursive"

    # === Ingestion batching ===
    embed_batch_size: int = 50
    upsert_batch_size: int = 100
    delete_batch_size: int = 100
    upsert_max_retries: int = 3
    upsert_retry_base_delay: float = 1.0
    stats_fan_out: int = 8

    # === Search defaults ===
    search_similarity_threshold: float = 0.25
    search_top_n: int = 4
    # "vector" | "hybrid" | "discovery"
    search_strategy: str = "vector"

    # === Storage ===
    storage_dir: str = "./data/storage"
    document_vectors_db_path: str = "data/document_vectors.db"

    # === App Config ===
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_embedding_providers(self) -> list[str]:
        """Return embedding provider names in selection order."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        providers.append("fastembed")
        return providers
