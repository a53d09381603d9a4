"""Unit tests for ChromaDBIndexProvider against a temporary persistent client."""

from __future__ import annotations

from pathlib import Path

import pytest

from chunkwise.models.search import ContextPair
from chunkwise.models.vector import VectorRecord
from chunkwise.providers.vector_index.chromadb_provider import (
    ChromaDBIndexProvider,
    _to_chroma_metadata,
)
from chunkwise.utils.errors import NamespaceConflictError, VectorIndexError


def _record(record_id: str, vector: list[float], text: str, **payload) -> VectorRecord:
    return VectorRecord(id=record_id, vector=vector, payload={"text": text, **payload})


@pytest.fixture()
def provider(tmp_path: Path) -> ChromaDBIndexProvider:
    return ChromaDBIndexProvider(persist_directory=str(tmp_path / "chroma"))


@pytest.fixture()
async def populated(provider: ChromaDBIndexProvider) -> ChromaDBIndexProvider:
    await provider.create_namespace("ws", 2)
    await provider.upsert(
        "ws",
        [
            _record("a", [1.0, 0.0], "alpha stays put", title="a.txt"),
            _record("b", [0.0, 1.0], "bravo needle here", title="b.txt"),
            _record("c", [0.7, 0.7], "charlie", title="c.txt"),
            _record("d", [0.9, 0.1], "no metadata at all"),
        ],
    )
    return provider


class TestMetadataConversion:
    def test_scalars_kept_text_and_none_dropped(self) -> None:
        assert _to_chroma_metadata({"text": "x", "title": "a", "n": 2, "none": None}) == {
            "title": "a",
            "n": 2,
        }

    def test_nested_values_serialized(self) -> None:
        assert _to_chroma_metadata({"tags": ["a", "b"]}) == {"tags": '["a", "b"]'}


class TestNamespaces:
    @pytest.mark.asyncio
    async def test_lifecycle(self, provider) -> None:
        assert await provider.heartbeat() is True
        assert await provider.namespace_exists("ws") is False

        await provider.create_namespace("ws", 3)
        stats = await provider.get_namespace("ws")
        assert stats.dimension == 3
        assert stats.distance == "cosine"
        assert stats.vector_count == 0
        assert "ws" in await provider.list_namespaces()

        await provider.delete_namespace("ws")
        assert await provider.get_namespace("ws") is None

    @pytest.mark.asyncio
    async def test_create_twice_conflicts(self, provider) -> None:
        await provider.create_namespace("ws", 3)
        with pytest.raises(NamespaceConflictError):
            await provider.create_namespace("ws", 3)

    @pytest.mark.asyncio
    async def test_count_missing_namespace(self, provider) -> None:
        assert await provider.count("missing") == 0


class TestPointsAndQueries:
    @pytest.mark.asyncio
    async def test_count_includes_records_without_metadata(self, populated) -> None:
        assert await populated.count("ws") == 4

    @pytest.mark.asyncio
    async def test_query_returns_text_and_metadata(self, populated) -> None:
        hits = await populated.query("ws", [1.0, 0.0], limit=2)

        assert hits[0].id == "a"
        assert hits[0].score == pytest.approx(1.0, abs=1e-3)
        assert hits[0].payload == {"title": "a.txt", "text": "alpha stays put"}

    @pytest.mark.asyncio
    async def test_query_threshold(self, populated) -> None:
        hits = await populated.query("ws", [1.0, 0.0], limit=4, score_threshold=0.5)
        assert {h.id for h in hits} == {"a", "c", "d"}

    @pytest.mark.asyncio
    async def test_query_limit_larger_than_collection(self, populated) -> None:
        assert len(await populated.query("ws", [1.0, 0.0], limit=50)) == 4

    @pytest.mark.asyncio
    async def test_hybrid_word_match_changes_top_results(self, populated) -> None:
        plain = await populated.query("ws", [1.0, 0.0], limit=2)
        hybrid = await populated.hybrid_query("ws", [1.0, 0.0], "NEEDLE", limit=2)

        assert [h.id for h in plain] == ["a", "d"]
        assert [h.id for h in hybrid] == ["b", "a"]
        assert hybrid[0].score == pytest.approx(0.0, abs=1e-3)

    @pytest.mark.asyncio
    async def test_hybrid_without_word_match_equals_vector(self, populated) -> None:
        plain = await populated.query("ws", [1.0, 0.0], limit=3)
        hybrid = await populated.hybrid_query("ws", [1.0, 0.0], "zulu", limit=3)
        assert [h.id for h in hybrid] == [h.id for h in plain]

    @pytest.mark.asyncio
    async def test_delete_vectors(self, populated) -> None:
        await populated.delete_vectors("ws", ["a", "b"])
        assert await populated.count("ws") == 2

    @pytest.mark.asyncio
    async def test_discover_unsupported(self, populated) -> None:
        pair = ContextPair(positive=[1.0, 0.0], negative=[0.0, 1.0])
        with pytest.raises(VectorIndexError, match="discovery"):
            await populated.discover("ws", [1.0, 0.0], [pair], limit=2)

    def test_provider_name(self, provider) -> None:
        assert provider.get_provider_name() == "chromadb"
