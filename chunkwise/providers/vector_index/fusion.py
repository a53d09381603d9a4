"""Scoring helpers shared by the vector index backends.

Hybrid search runs two rankings over a namespace, one by vector
similarity and one restricted to chunks containing the query's words, and
merges them with reciprocal rank fusion (RRF).  Fusion only decides the
order: every returned :class:`IndexHit` keeps its cosine similarity as
``score`` so similarity thresholds mean the same thing for every search
strategy.
"""

from __future__ import annotations

import math
import re

from chunkwise.models.vector import IndexHit

# Damping constant from Cormack et al., "Reciprocal Rank Fusion
# outperforms Condorcet and individual Rank Learning Methods" (2009).
RRF_K = 60

_TERM_RE = re.compile(r"\w+")


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Return the cosine similarity of *a* and *b*; ``0.0`` for zero vectors."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


def query_terms(text: str) -> list[str]:
    """Distinct lowercase words of *text*, in first-seen order."""
    return list(dict.fromkeys(t.lower() for t in _TERM_RE.findall(text or "")))


def matched_terms(terms: list[str], chunk_text: str) -> int:
    """Count how many of *terms* occur as words in *chunk_text*."""
    words = set(query_terms(chunk_text))
    return sum(1 for term in terms if term in words)


def reciprocal_rank_fusion(rankings: list[list[IndexHit]], limit: int) -> list[IndexHit]:
    """Merge ranked hit lists by summed ``1 / (RRF_K + rank)``.

    A hit's score is taken from the first list it appears in.  Ties are
    broken by that score, highest first.
    """
    fused: dict[str, float] = {}
    hits: dict[str, IndexHit] = {}
    for ranking in rankings:
        for rank, hit in enumerate(ranking, start=1):
            fused[hit.id] = fused.get(hit.id, 0.0) + 1.0 / (RRF_K + rank)
            hits.setdefault(hit.id, hit)
    ordered = sorted(hits, key=lambda vid: (fused[vid], hits[vid].score), reverse=True)
    return [hits[vid] for vid in ordered[:limit]]
