"""Unit tests for SimilaritySearchPipeline.

A small namespace is built in the in-memory index with the hashing
embedder, so a query equal to a stored chunk always scores 1.0.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from chunkwise.interfaces.reranker_provider import IRerankerProvider
from chunkwise.models.search import ContextPair, SearchOptions, SearchStrategy
from chunkwise.models.vector import IndexHit, VectorRecord
from chunkwise.services.similarity_search import (
    INVALID_REQUEST_MESSAGE,
    NO_DOCUMENTS_MESSAGE,
    SimilaritySearchPipeline,
    curate_sources,
    source_identifier,
)
from chunkwise.utils.errors import RerankError, VectorIndexError

CHUNKS = [
    ("a.txt", "Embeddings map passages into a vector space."),
    ("b.txt", "Chunk overlap preserves context across boundaries."),
    ("c.txt", "Rerankers rescore candidates with a cross encoder."),
    ("d.txt", "Namespaces isolate the vectors of each workspace."),
]


@pytest.fixture()
async def index(memory_index, embedder):
    await memory_index.create_namespace("ws", embedder.dimension)
    await memory_index.upsert(
        "ws",
        [
            VectorRecord(
                id=f"v{i}",
                vector=embedder.vector_for(text),
                payload={"title": title, "published": "2024", "text": text},
            )
            for i, (title, text) in enumerate(CHUNKS)
        ],
    )
    return memory_index


def _hit(vector_id: str, score: float, title: str = "x.txt") -> IndexHit:
    return IndexHit(
        id=vector_id,
        score=score,
        payload={"title": title, "published": "2024", "text": f"text of {vector_id}"},
    )


class TestSourceHelpers:
    def test_source_identifier(self) -> None:
        assert source_identifier({"title": "a.txt", "published": "2024"}) == (
            "title:a.txt-timestamp:2024"
        )

    def test_source_identifier_without_title_is_random(self) -> None:
        first = source_identifier({"published": "2024"})
        second = source_identifier({"published": "2024"})
        assert first != second
        assert not first.startswith("title:")

    def test_curate_sources_unwraps_metadata(self) -> None:
        sources = [{"metadata": {"title": "a"}}, {"title": "b"}, {}]
        assert curate_sources(sources) == [{"title": "a"}, {"title": "b"}]


class TestSearchInputs:
    @pytest.mark.asyncio
    async def test_missing_arguments(self, index, embedder) -> None:
        pipeline = SimilaritySearchPipeline(index)
        assert (await pipeline.search("", "q", embedder)).message == INVALID_REQUEST_MESSAGE
        assert (await pipeline.search("ws", "", embedder)).message == INVALID_REQUEST_MESSAGE
        assert (await pipeline.search("ws", "q", None)).message == INVALID_REQUEST_MESSAGE

    @pytest.mark.asyncio
    async def test_missing_namespace(self, index, embedder) -> None:
        result = await SimilaritySearchPipeline(index).search("nope", "query", embedder)
        assert result.message == NO_DOCUMENTS_MESSAGE
        assert result.context_texts == []
        assert result.sources == []

    @pytest.mark.asyncio
    async def test_backend_failure_becomes_message(self, mock_vector_index, embedder) -> None:
        mock_vector_index.namespace_exists = AsyncMock(
            side_effect=VectorIndexError(message="connection refused")
        )
        result = await SimilaritySearchPipeline(mock_vector_index).search("ws", "q", embedder)
        assert result.message == "connection refused"


class TestVectorSearch:
    @pytest.mark.asyncio
    async def test_exact_chunk_ranks_first(self, index, embedder) -> None:
        query = CHUNKS[2][1]
        result = await SimilaritySearchPipeline(index).search(
            "ws", query, embedder, SearchOptions(similarity_threshold=0.0, rerank=False)
        )

        assert result.message is None
        assert result.strategy == SearchStrategy.VECTOR
        assert result.context_texts[0] == query
        assert result.sources[0]["title"] == "c.txt"
        assert result.sources[0]["score"] == pytest.approx(1.0)
        assert [s["text"] for s in result.sources] == result.context_texts

    @pytest.mark.asyncio
    async def test_threshold_drops_weak_hits(self, index, embedder) -> None:
        result = await SimilaritySearchPipeline(index).search(
            "ws", CHUNKS[0][1], embedder, SearchOptions(similarity_threshold=0.99)
        )
        assert result.context_texts == [CHUNKS[0][1]]

    @pytest.mark.asyncio
    async def test_top_n_limits_results(self, index, embedder) -> None:
        result = await SimilaritySearchPipeline(index).search(
            "ws", "vectors", embedder, SearchOptions(similarity_threshold=0.0, top_n=2)
        )
        assert len(result.context_texts) <= 2

    @pytest.mark.asyncio
    async def test_pinned_documents_are_filtered(self, index, embedder) -> None:
        options = SearchOptions(
            similarity_threshold=0.99,
            filter_identifiers=["title:a.txt-timestamp:2024"],
        )
        result = await SimilaritySearchPipeline(index).search("ws", CHUNKS[0][1], embedder, options)
        assert result.context_texts == []
        assert result.message is None


class TestStrategies:
    @pytest.mark.asyncio
    async def test_hybrid_strategy(self, index, embedder) -> None:
        options = SearchOptions(strategy=SearchStrategy.HYBRID, similarity_threshold=0.0)
        result = await SimilaritySearchPipeline(index).search("ws", CHUNKS[1][1], embedder, options)
        assert result.strategy == SearchStrategy.HYBRID
        assert result.context_texts[0] == CHUNKS[1][1]

    @pytest.mark.asyncio
    async def test_discovery_without_pairs_is_vector(self, index, embedder) -> None:
        options = SearchOptions(strategy=SearchStrategy.DISCOVERY)
        result = await SimilaritySearchPipeline(index).search("ws", CHUNKS[3][1], embedder, options)
        assert result.strategy == SearchStrategy.VECTOR

    @pytest.mark.asyncio
    async def test_discovery_with_pairs(self, index, embedder) -> None:
        pair = ContextPair(
            positive=embedder.vector_for(CHUNKS[3][1]),
            negative=embedder.vector_for(CHUNKS[0][1]),
        )
        options = SearchOptions(
            strategy=SearchStrategy.DISCOVERY, context_pairs=[pair], similarity_threshold=0.0
        )
        result = await SimilaritySearchPipeline(index).search("ws", CHUNKS[3][1], embedder, options)
        assert result.strategy == SearchStrategy.DISCOVERY
        assert result.context_texts[0] == CHUNKS[3][1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [SearchStrategy.HYBRID, SearchStrategy.DISCOVERY])
    async def test_pinned_documents_excluded_for_every_strategy(
        self, index, embedder, strategy
    ) -> None:
        pair = ContextPair(
            positive=embedder.vector_for(CHUNKS[0][1]),
            negative=embedder.vector_for(CHUNKS[2][1]),
        )
        options = SearchOptions(
            strategy=strategy,
            context_pairs=[pair],
            similarity_threshold=0.0,
            filter_identifiers=["title:a.txt-timestamp:2024"],
        )

        result = await SimilaritySearchPipeline(index).search("ws", CHUNKS[0][1], embedder, options)

        assert result.strategy == strategy
        assert result.context_texts
        assert CHUNKS[0][1] not in result.context_texts
        assert all(source["title"] != "a.txt" for source in result.sources)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [SearchStrategy.HYBRID, SearchStrategy.DISCOVERY])
    async def test_failing_strategy_falls_back_to_vector(
        self, mock_vector_index, embedder, strategy
    ) -> None:
        hits = [_hit("v1", 0.9), _hit("v2", 0.5)]
        mock_vector_index.query = AsyncMock(return_value=hits)
        mock_vector_index.hybrid_query = AsyncMock(side_effect=VectorIndexError(message="no index"))
        mock_vector_index.discover = AsyncMock(side_effect=VectorIndexError(message="no discover"))
        pair = ContextPair(positive=[1.0], negative=[0.0])
        options = SearchOptions(strategy=strategy, context_pairs=[pair], top_n=3)

        degraded = await SimilaritySearchPipeline(mock_vector_index).search(
            "ws", "q", embedder, options
        )
        plain = await SimilaritySearchPipeline(mock_vector_index).search(
            "ws", "q", embedder, SearchOptions(top_n=3)
        )

        assert degraded.strategy == SearchStrategy.VECTOR
        assert degraded.context_texts == plain.context_texts
        mock_vector_index.query.assert_awaited_with(
            "ws", embedder.vector_for("q"), limit=3, score_threshold=0.25
        )


class TestRerank:
    @pytest.fixture()
    def hits_index(self, mock_vector_index):
        mock_vector_index.query = AsyncMock(
            return_value=[_hit("v1", 0.9), _hit("v2", 0.8), _hit("v3", 0.7)]
        )
        return mock_vector_index

    @pytest.mark.asyncio
    async def test_reranker_order_wins(self, hits_index, embedder) -> None:
        reranker = MagicMock(spec=IRerankerProvider)
        reranker.rerank = AsyncMock(side_effect=lambda q, docs, top_k: list(reversed(docs))[:top_k])

        result = await SimilaritySearchPipeline(hits_index, reranker).search(
            "ws", "q", embedder, SearchOptions(top_n=2)
        )

        assert result.context_texts == ["text of v3", "text of v2"]
        reranker.rerank.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rerank_failure_keeps_vector_order(self, hits_index, embedder) -> None:
        reranker = MagicMock(spec=IRerankerProvider)
        reranker.rerank = AsyncMock(side_effect=RerankError(message="model missing"))

        result = await SimilaritySearchPipeline(hits_index, reranker).search(
            "ws", "q", embedder, SearchOptions(top_n=2)
        )

        assert result.message is None
        assert result.context_texts == ["text of v1", "text of v2"]

    @pytest.mark.asyncio
    async def test_rerank_disabled(self, hits_index, embedder) -> None:
        reranker = MagicMock(spec=IRerankerProvider)
        reranker.rerank = AsyncMock()

        await SimilaritySearchPipeline(hits_index, reranker).search(
            "ws", "q", embedder, SearchOptions(rerank=False)
        )

        reranker.rerank.assert_not_called()
