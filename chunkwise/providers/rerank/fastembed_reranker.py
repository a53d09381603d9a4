"""Cross-encoder reranker backed by fastembed.

Scores each (query, candidate text) pair with a small ONNX cross-encoder
and reorders the candidates by that score.  The model is loaded on first
use; the default ``Xenova/ms-marco-MiniLM-L-6-v2`` is about 80 MB.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from chunkwise.interfaces.reranker_provider import IRerankerProvider
from chunkwise.utils.errors import RerankError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "Xenova/ms-marco-MiniLM-L-6-v2"


class FastEmbedReranker(IRerankerProvider):
    """Reranker using ``fastembed.rerank.cross_encoder.TextCrossEncoder``."""

    def __init__(self, model_name: str | None = None) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._encoder = None  # Lazy-loaded

    def _load_model(self) -> None:
        if self._encoder is not None:
            return
        try:
            from fastembed.rerank.cross_encoder import TextCrossEncoder

            logger.info("loading_reranker_model", model=self._model_name)
            self._encoder = TextCrossEncoder(model_name=self._model_name)
        except Exception as exc:
            raise RerankError(
                message=f"Failed to load reranker model '{self._model_name}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    def _score(self, query: str, texts: list[str]) -> list[float]:
        self._load_model()
        return [float(score) for score in self._encoder.rerank(query, texts)]

    async def rerank(
        self,
        query: str,
        documents: list[dict[str, Any]],
        top_k: int = 4,
    ) -> list[dict[str, Any]]:
        if not documents:
            return []

        texts = [str(doc.get("text", "")) for doc in documents]
        try:
            scores = await asyncio.to_thread(self._score, query, texts)
        except RerankError:
            raise
        except Exception as exc:
            raise RerankError(
                message=f"Reranking failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if len(scores) != len(documents):
            raise RerankError(
                message=f"Reranker returned {len(scores)} scores for {len(documents)} documents",
                provider_name=self.get_provider_name(),
            )

        scored = [{**doc, "rerank_score": score} for doc, score in zip(documents, scores)]
        scored.sort(key=lambda d: d["rerank_score"], reverse=True)
        logger.debug(
            "rerank_complete",
            candidates=len(documents),
            returned=min(top_k, len(scored)),
            model=self._model_name,
        )
        return scored[:top_k]

    def get_provider_name(self) -> str:
        return f"fastembed_rerank_{self._model_name.split('/')[-1]}"
