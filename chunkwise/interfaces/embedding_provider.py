"""Contract for turning chunk text and search queries into vectors.

The vector store embeds chunks through :meth:`IEmbeddingProvider.embed`
and the search pipeline embeds queries through
:meth:`IEmbeddingProvider.embed_single`.  The provider also tells the
vector store how long a chunk may be and how wide a new namespace must be.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider     - OpenAI or compatible /v1/embeddings server
#   FastEmbedEmbeddingProvider  - local ONNX model
# Located in: chunkwise/providers/embedding/
class IEmbeddingProvider(ABC):
    """Embeds chunks for ingestion and queries for similarity search."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per chunk text, in the same order.

        Providers split oversized inputs into several backend calls
        themselves.  An empty result means the backend produced nothing,
        which aborts ingestion of the document.

        Raises
        ------
        chunkwise.utils.errors.EmbeddingError
            If the backend call fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Return the vector for a search query."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Vector width; used when a namespace has to be created."""

    @abstractmethod
    def get_max_chunk_length(self) -> int:
        """Longest chunk, in characters, worth sending to this model.

        :meth:`TextSplitter.determine_max_chunk_size` caps the configured
        chunk size at this value.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Identifier used in logs and error messages."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` when the provider is configured and usable."""
