"""Shared pytest fixtures for the chunkwise test suite."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from chunkwise.config.settings import Settings
from chunkwise.interfaces.document_storage import IDocumentStorage
from chunkwise.interfaces.document_vector_index import IDocumentVectorIndex
from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
from chunkwise.models.document import DocumentRecord
from chunkwise.models.vector import CachedVectors
from chunkwise.providers.vector_index.memory_provider import InMemoryIndexProvider
from chunkwise.utils.tokenizer import TokenCounter

_WORD_RE = re.compile(r"\w+")


class HashingEmbedder(IEmbeddingProvider):
    """Deterministic bag-of-words embedder.

    Each lowercase word increments one of ``dimension`` buckets chosen by
    its SHA-256 hash, so texts sharing words have high cosine similarity.
    """

    def __init__(self, dimension: int = 32, max_chunk_length: int = 1000) -> None:
        self.dimension = dimension
        self.max_chunk_length = max_chunk_length
        self.calls: list[list[str]] = []

    def vector_for(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for word in _WORD_RE.findall(text.lower()):
            bucket = int(hashlib.sha256(word.encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        if not any(vector):
            vector[0] = 1.0
        return vector

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector_for(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        return self.vector_for(text)

    def get_dimension(self) -> int:
        return self.dimension

    def get_max_chunk_length(self) -> int:
        return self.max_chunk_length

    def get_provider_name(self) -> str:
        return "hashing"

    def is_available(self) -> bool:
        return True


class InMemoryDocumentStorage(IDocumentStorage):
    """Dict-backed storage double that records what was written."""

    def __init__(self) -> None:
        self.records: dict[str, DocumentRecord] = {}
        self.caches: dict[str, list[list[dict]]] = {}
        self.removed: list[str] = []

    def write_document_record(self, record: DocumentRecord, slug: str) -> Path:
        self.records[slug] = record
        return Path(f"/virtual/{slug}.json")

    def read_cached_vectors(self, source_path: str) -> CachedVectors:
        if source_path not in self.caches:
            return CachedVectors(exists=False)
        return CachedVectors(exists=True, chunks=self.caches[source_path])

    def write_cached_vectors(self, batches, source_path: str) -> None:
        self.caches[source_path] = batches

    def remove_source_file(self, path) -> None:
        self.removed.append(str(path))


class InMemoryDocumentVectorIndex(IDocumentVectorIndex):
    def __init__(self) -> None:
        self.rows: list[tuple[str, str]] = []

    async def bulk_insert(self, rows: list[tuple[str, str]]) -> int:
        self.rows.extend(rows)
        return len(rows)

    async def vector_ids_for(self, doc_id: str) -> list[str]:
        return [vector_id for d, vector_id in self.rows if d == doc_id]

    async def delete_for_document(self, doc_id: str) -> int:
        before = len(self.rows)
        self.rows = [row for row in self.rows if row[0] != doc_id]
        return before - len(self.rows)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def token_counter() -> TokenCounter:
    """Offline token counter using the 4 chars/token estimate."""
    return TokenCounter(None)


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def memory_index() -> InMemoryIndexProvider:
    return InMemoryIndexProvider()


@pytest.fixture
def document_storage() -> InMemoryDocumentStorage:
    return InMemoryDocumentStorage()


@pytest.fixture
def document_vectors() -> InMemoryDocumentVectorIndex:
    return InMemoryDocumentVectorIndex()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated from any local .env and writing under tmp_path."""
    return Settings(
        _env_file=None,
        vector_db="memory",
        openai_api_key="",
        storage_dir=str(tmp_path / "storage"),
        document_vectors_db_path=str(tmp_path / "document_vectors.db"),
        text_splitter_chunk_size=400,
        text_splitter_chunk_overlap=20,
        text_splitter_min_chunk_size=1,
        upsert_retry_base_delay=0.01,
        reranker_enabled=False,
        tokenizer_model="",
    )


@pytest.fixture
def sample_document() -> DocumentRecord:
    paragraphs = [
        "Vector databases store embeddings so that similar passages can be found quickly.",
        "Chunking splits long documents into passages that fit the embedding model.",
        "Overlap between neighbouring chunks keeps sentences that straddle a boundary searchable.",
        "Reranking reorders the retrieved passages with a cross-encoder for better precision.",
    ]
    return DocumentRecord(
        id="doc-1",
        url="file:///tmp/guide.pdf",
        title="guide.pdf",
        docSource="pdf file uploaded by the user.",
        published="1/2/2024, 10:00:00 AM",
        wordCount=48,
        pageContent="\n\n".join(paragraphs),
        token_count_estimate=120,
    )


@pytest.fixture
def mock_vector_index() -> MagicMock:
    """Fully mocked vector index; tests set return values as needed."""
    from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider

    mock = MagicMock(spec=IVectorIndexProvider)
    mock.heartbeat = AsyncMock(return_value=True)
    mock.namespace_exists = AsyncMock(return_value=True)
    mock.list_namespaces = AsyncMock(return_value=[])
    mock.create_namespace = AsyncMock(return_value=None)
    mock.delete_namespace = AsyncMock(return_value=None)
    mock.get_namespace = AsyncMock(return_value=None)
    mock.count = AsyncMock(return_value=0)
    mock.upsert = AsyncMock(return_value=True)
    mock.delete_vectors = AsyncMock(return_value=None)
    mock.query = AsyncMock(return_value=[])
    mock.hybrid_query = AsyncMock(return_value=[])
    mock.discover = AsyncMock(return_value=[])
    mock.get_provider_name.return_value = "mock_index"
    return mock
