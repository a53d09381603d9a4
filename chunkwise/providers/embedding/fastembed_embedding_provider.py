"""Local chunk embeddings with fastembed (ONNX Runtime, CPU only).

Chunks are encoded with ``passage_embed`` and search queries with
``query_embed``, so asymmetric retrieval models (the BGE and E5 families)
get the prefixes they were trained with.  Used whenever no OpenAI key is
configured.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
from chunkwise.utils.errors import EmbeddingError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "BAAI/bge-small-en-v1.5"
_FALLBACK_DIMENSION = 384
_ONNX_BATCH_SIZE = 64
# About 512 tokens of English prose.
_DEFAULT_MAX_CHUNK_LENGTH = 1000

_DIMENSIONS: dict[str, int] = {
    "BAAI/bge-small-en-v1.5": 384,
    "BAAI/bge-base-en-v1.5": 768,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "nomic-ai/nomic-embed-text-v1.5": 768,
    "intfloat/multilingual-e5-large": 1024,
}


class FastEmbedEmbeddingProvider(IEmbeddingProvider):
    """Embeds chunks on the local CPU with a fastembed ``TextEmbedding``.

    The model is created on the first embed call; the first run downloads
    its weights into fastembed's cache.

    Parameters
    ----------
    model_name:
        fastembed model id, ``BAAI/bge-small-en-v1.5`` by default.
    max_chunk_length:
        Chunk length cap in characters; ``0`` keeps the 1000 default.
    """

    def __init__(self, model_name: str | None = None, max_chunk_length: int = 0) -> None:
        self._model_name = model_name or _DEFAULT_MODEL
        self._max_chunk_length = max_chunk_length or _DEFAULT_MAX_CHUNK_LENGTH
        self._model: Any = None

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed chunk texts in a worker thread; order follows *texts*."""
        if not texts:
            return []
        return await self._run(lambda model: model.passage_embed(texts, batch_size=_ONNX_BATCH_SIZE))

    async def embed_single(self, text: str) -> list[float]:
        """Embed a search query with the model's query encoding."""
        vectors = await self._run(lambda model: model.query_embed(text))
        if not vectors:
            raise EmbeddingError(
                message="fastembed returned no vector for query",
                provider_name=self.get_provider_name(),
            )
        return vectors[0]

    def get_dimension(self) -> int:
        return _DIMENSIONS.get(self._model_name, _FALLBACK_DIMENSION)

    def get_max_chunk_length(self) -> int:
        return self._max_chunk_length

    def get_provider_name(self) -> str:
        return f"fastembed_{self._model_name.split('/')[-1]}"

    def is_available(self) -> bool:
        try:
            import fastembed  # noqa: F401
        except ImportError:
            return False
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_model(self) -> Any:
        if self._model is None:
            try:
                from fastembed import TextEmbedding

                logger.info("fastembed_model_loading", model=self._model_name)
                self._model = TextEmbedding(model_name=self._model_name)
            except Exception as exc:
                raise EmbeddingError(
                    message=f"Failed to load fastembed model '{self._model_name}': {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
        return self._model

    async def _run(self, encode) -> list[list[float]]:  # noqa: ANN001
        def _encode_sync() -> list[list[float]]:
            model = self._ensure_model()
            return [vector.tolist() for vector in encode(model)]

        try:
            return await asyncio.to_thread(_encode_sync)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(
                message=f"fastembed embedding error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
