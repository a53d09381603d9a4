"""Unit tests for the shared hybrid-search scoring helpers."""

from __future__ import annotations

from chunkwise.models.vector import IndexHit
from chunkwise.providers.vector_index.fusion import (
    matched_terms,
    query_terms,
    reciprocal_rank_fusion,
)


def _hit(vector_id: str, score: float) -> IndexHit:
    return IndexHit(id=vector_id, score=score, payload={"text": vector_id})


class TestQueryTerms:
    def test_lowercased_and_deduplicated(self) -> None:
        assert query_terms("Zebra, zebra and LION!") == ["zebra", "and", "lion"]

    def test_empty(self) -> None:
        assert query_terms("") == []

    def test_matched_terms_counts_whole_words(self) -> None:
        assert matched_terms(["zebra", "lion"], "A zebra met a lion.") == 2
        assert matched_terms(["zebra"], "zebras only") == 0


class TestReciprocalRankFusion:
    def test_item_in_both_rankings_wins(self) -> None:
        by_vector = [_hit("a", 0.9), _hit("b", 0.8), _hit("c", 0.7)]
        by_words = [_hit("c", 0.7)]

        fused = reciprocal_rank_fusion([by_vector, by_words], limit=3)

        assert [h.id for h in fused] == ["c", "a", "b"]

    def test_ties_broken_by_score(self) -> None:
        fused = reciprocal_rank_fusion([[_hit("a", 0.2)], [_hit("b", 0.6)]], limit=2)
        assert [h.id for h in fused] == ["b", "a"]

    def test_limit_and_scores_preserved(self) -> None:
        fused = reciprocal_rank_fusion([[_hit("a", 0.9), _hit("b", 0.5)], []], limit=1)
        assert fused == [_hit("a", 0.9)]
