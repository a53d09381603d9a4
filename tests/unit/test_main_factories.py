"""Unit tests for the factory functions in chunkwise/main.py.

Covers provider selection for embeddings, vector index and reranker, and
assembly of the orchestrator, search pipeline and document converter.
Nothing here touches the network or downloads models.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from chunkwise.config.settings import Settings
from chunkwise.utils.errors import ConfigurationError


def _settings(tmp_path: Path, **overrides) -> Settings:
    """Build a Settings instance with safe defaults and optional overrides.

    The API key defaults to empty so the local FastEmbed fallback is
    exercised unless explicitly overridden.
    """
    defaults = {
        "_env_file": None,
        "openai_api_key": "",
        "vector_db": "memory",
        "storage_dir": str(tmp_path / "storage"),
        "document_vectors_db_path": str(tmp_path / "dv.db"),
        "chromadb_persist_dir": str(tmp_path / "chroma"),
        "reranker_enabled": False,
        "app_env": "test",
        "tokenizer_model": "",
    }
    defaults.update(overrides)
    return Settings(**defaults)


# ======================================================================
# _build_embedding_provider
# ======================================================================


class TestBuildEmbeddingProvider:
    def test_openai_when_key_set(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_embedding_provider
        from chunkwise.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = _build_embedding_provider(_settings(tmp_path, openai_api_key="sk-test"))
        assert isinstance(provider, OpenAIEmbeddingProvider)

    def test_fastembed_fallback(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_embedding_provider
        from chunkwise.providers.embedding.fastembed_embedding_provider import (
            FastEmbedEmbeddingProvider,
        )

        provider = _build_embedding_provider(
            _settings(tmp_path, embedding_max_chunk_length=700)
        )
        assert isinstance(provider, FastEmbedEmbeddingProvider)
        assert provider.get_max_chunk_length() == 700


# ======================================================================
# _build_vector_index
# ======================================================================


class TestBuildVectorIndex:
    def test_memory(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_vector_index

        assert _build_vector_index(_settings(tmp_path)).get_provider_name() == "memory"

    def test_chromadb(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_vector_index

        index = _build_vector_index(_settings(tmp_path, vector_db="chromadb"))
        assert index.get_provider_name() == "chromadb"

    def test_qdrant(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_vector_index

        with patch(
            "chunkwise.providers.vector_index.qdrant_provider.AsyncQdrantClient",
            return_value=MagicMock(),
        ) as client_cls:
            index = _build_vector_index(
                _settings(
                    tmp_path,
                    vector_db=" Qdrant ",
                    qdrant_endpoint="http://qdrant:6333",
                    qdrant_api_key="secret",
                )
            )

        assert index.get_provider_name() == "qdrant"
        client_cls.assert_called_once_with(url="http://qdrant:6333", api_key="secret", timeout=300)

    def test_unknown_backend(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_vector_index

        with pytest.raises(ConfigurationError, match="Unknown vector database"):
            _build_vector_index(_settings(tmp_path, vector_db="pinecone"))


# ======================================================================
# _build_reranker
# ======================================================================


class TestBuildReranker:
    def test_disabled(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_reranker

        assert _build_reranker(_settings(tmp_path)) is None

    def test_enabled(self, tmp_path: Path) -> None:
        from chunkwise.main import _build_reranker
        from chunkwise.providers.rerank.fastembed_reranker import FastEmbedReranker

        reranker = _build_reranker(_settings(tmp_path, reranker_enabled=True))
        assert isinstance(reranker, FastEmbedReranker)


# ======================================================================
# Service assembly
# ======================================================================


class TestServiceAssembly:
    def test_vector_store_service(self, tmp_path: Path) -> None:
        from chunkwise.main import build_vector_store_service
        from chunkwise.services.vector_store_service import VectorStoreOrchestrator

        service = build_vector_store_service(_settings(tmp_path))
        assert isinstance(service, VectorStoreOrchestrator)

    @pytest.mark.asyncio
    async def test_shared_index_between_services(self, tmp_path: Path, embedder) -> None:
        from chunkwise.main import build_search_service, build_vector_store_service
        from chunkwise.models.document import DocumentRecord
        from chunkwise.providers.vector_index.memory_provider import InMemoryIndexProvider

        settings = _settings(tmp_path, search_similarity_threshold=0.0)
        index = InMemoryIndexProvider()
        store = build_vector_store_service(settings, vector_index=index, embedding_provider=embedder)
        search = build_search_service(settings, vector_index=index)

        added = await store.add_document(
            "ws",
            DocumentRecord(id="d1", title="notes.txt", page_content="Shared index works end to end."),
        )
        result = await search.search("ws", "Shared index works end to end.", embedder)

        assert added.vectorized is True
        assert result.context_texts
        assert "Shared index works end to end." in result.context_texts[0]

    def test_search_defaults_from_settings(self, tmp_path: Path) -> None:
        from chunkwise.main import build_search_service

        search = build_search_service(
            _settings(tmp_path, search_top_n=7, search_similarity_threshold=0.5)
        )
        assert search._default_options.top_n == 7
        assert search._default_options.similarity_threshold == 0.5
        assert search._default_options.rerank is False

    def test_search_strategy_from_settings(self, tmp_path: Path) -> None:
        from chunkwise.main import build_search_service
        from chunkwise.models.search import SearchStrategy

        search = build_search_service(_settings(tmp_path, search_strategy="hybrid"))
        assert search._default_options.strategy == SearchStrategy.HYBRID

    def test_settings_resolved_from_yaml_when_omitted(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from chunkwise.main import build_search_service
        from chunkwise.models.search import SearchStrategy

        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text(
            "vector_index:\n  backend: memory\n"
            "search:\n  strategy: discovery\n  top_n: 6\n  rerank: false\n"
        )
        monkeypatch.chdir(tmp_path)
        for name in ("VECTOR_DB", "SEARCH_STRATEGY", "SEARCH_TOP_N", "RERANKER_ENABLED"):
            monkeypatch.delenv(name, raising=False)

        search = build_search_service()

        assert search._default_options.strategy == SearchStrategy.DISCOVERY
        assert search._default_options.top_n == 6
        assert search._default_options.rerank is False

    def test_document_converter(self, tmp_path: Path) -> None:
        from chunkwise.main import build_document_converter

        converter = build_document_converter(_settings(tmp_path))
        assert converter.loader_for("a.pdf").get_provider_name() == "pymupdf"
        assert converter.loader_for("a.docx").get_provider_name() == "python-docx"
        assert converter.loader_for("a.md").get_provider_name() == "text"
        assert converter.loader_for("a.zip") is None

    def test_loaders_imported_when_converter_is_built(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        import chunkwise.main
        import chunkwise.providers

        monkeypatch.delattr(chunkwise.providers, "loaders", raising=False)
        for name in [m for m in sys.modules if m.startswith("chunkwise.providers.loaders")]:
            monkeypatch.delitem(sys.modules, name)
        main = importlib.reload(chunkwise.main)
        assert "chunkwise.providers.loaders" not in sys.modules

        main.build_document_converter(_settings(tmp_path))
        assert "chunkwise.providers.loaders" in sys.modules

    def test_setup_logging(self, tmp_path: Path) -> None:
        from chunkwise.main import setup_logging

        setup_logging(_settings(tmp_path, log_level="DEBUG"))
