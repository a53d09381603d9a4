"""Embedding adapter for OpenAI and OpenAI-compatible embeddings endpoints.

Any server speaking the ``/v1/embeddings`` protocol works (OpenAI itself,
LiteLLM, LocalAI, TogetherAI) by setting ``OPENAI_BASE_URL`` and
``OPENAI_EMBEDDING_MODEL``.  The adapter also reports the longest chunk
the selected model accepts, which the vector store uses to cap the text
splitter's chunk size.
"""

from __future__ import annotations

from typing import NamedTuple

import openai
import structlog

from chunkwise.config.settings import Settings
from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
from chunkwise.utils.errors import EmbeddingError
from chunkwise.utils.tokenizer import CHARS_PER_TOKEN

logger = structlog.get_logger(logger_name=__name__)

_REQUEST_INPUT_LIMIT = 2048
_DEFAULT_MODEL = "text-embedding-3-small"
_DEFAULT_MAX_CHUNK_LENGTH = 8191


class _ModelSpec(NamedTuple):
    dimension: int
    max_input_tokens: int | None = None


_MODEL_SPECS: dict[str, _ModelSpec] = {
    "text-embedding-3-small": _ModelSpec(1536),
    "text-embedding-3-large": _ModelSpec(3072),
    "text-embedding-ada-002": _ModelSpec(1536),
    "BAAI/bge-base-en-v1.5": _ModelSpec(768, 512),
    "BAAI/bge-large-en-v1.5": _ModelSpec(1024, 512),
    "togethercomputer/m2-bert-80M-8k-retrieval": _ModelSpec(768),
    "WhereIsAI/UAE-Large-V1": _ModelSpec(1024, 512),
    "intfloat/multilingual-e5-large-instruct": _ModelSpec(1024, 512),
}
_UNKNOWN_MODEL = _ModelSpec(768)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embeds chunk text through an OpenAI-compatible embeddings API.

    Parameters
    ----------
    settings:
        Supplies the API key, optional base URL, model name and the
        ``embedding_max_chunk_length`` override.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._max_chunk_override = settings.embedding_max_chunk_length
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._spec = _MODEL_SPECS.get(self._model, _UNKNOWN_MODEL)

        client_kwargs: dict = {"api_key": self._api_key}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
            self._provider_label = "openai-compatible_embedding"
        else:
            self._provider_label = "openai_embedding"
        self._client = openai.AsyncOpenAI(**client_kwargs)

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per chunk text, in input order.

        Inputs above the per-request limit of the embeddings endpoint are
        sent as consecutive requests.

        Raises
        ------
        EmbeddingError
            If the API fails or returns a different number of vectors than
            it was sent.
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), _REQUEST_INPUT_LIMIT):
            vectors.extend(await self._request(texts[start : start + _REQUEST_INPUT_LIMIT]))
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        """Embed a search query."""
        vectors = await self.embed([text])
        if not vectors:
            raise EmbeddingError(
                message="Embedding API returned no vector for query",
                provider_name=self.get_provider_name(),
            )
        return vectors[0]

    def get_dimension(self) -> int:
        return self._spec.dimension

    def get_max_chunk_length(self) -> int:
        """Longest chunk, in characters, the model should be sent.

        The settings override wins; models with a small token window are
        capped at four characters per token.
        """
        if self._max_chunk_override > 0:
            return self._max_chunk_override
        if self._spec.max_input_tokens:
            return self._spec.max_input_tokens * CHARS_PER_TOKEN
        return _DEFAULT_MAX_CHUNK_LENGTH

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _request(self, chunk_texts: list[str]) -> list[list[float]]:
        try:
            response = await self._client.embeddings.create(input=chunk_texts, model=self._model)
        except openai.APIError as exc:
            raise EmbeddingError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        vectors = [item.embedding for item in response.data]
        if len(vectors) != len(chunk_texts):
            raise EmbeddingError(
                message=(
                    f"Embedding API returned {len(vectors)} vectors "
                    f"for {len(chunk_texts)} chunks"
                ),
                provider_name=self.get_provider_name(),
            )
        logger.debug(
            "embedding_request_completed",
            model=self._model,
            provider=self._provider_label,
            chunks=len(chunk_texts),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return vectors
