"""Abstract base class for rerankers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IRerankerProvider(ABC):
    """Contract for a second-pass relevance scorer.

    A reranker reorders an already retrieved candidate set; it never adds
    candidates.
    """

    @abstractmethod
    async def rerank(
        self,
        query: str,
        documents: list[dict[str, Any]],
        top_k: int = 4,
    ) -> list[dict[str, Any]]:
        """Return the *top_k* most relevant documents, best first.

        Parameters
        ----------
        query:
            The search text.
        documents:
            Candidate dicts; each must carry its text under ``"text"``.
        top_k:
            Maximum number of documents to return.

        Returns
        -------
        list[dict[str, Any]]
            Copies of the input dicts with a ``"rerank_score"`` key added.

        Raises
        ------
        chunkwise.utils.errors.RerankError
            If scoring fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this reranker."""
