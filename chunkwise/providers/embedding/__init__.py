"""Embedding provider implementations.

Embeddings convert chunk text into numeric vectors stored in the vector
index and compared at query time.

Two implementations of IEmbeddingProvider (in selection order):
    1. OpenAIEmbeddingProvider    - text-embedding-3-small (1536 dims) or any
       OpenAI-compatible endpoint.  Chosen when OPENAI_API_KEY is set.
    2. FastEmbedEmbeddingProvider - local ONNX model, no API key (384 dims
       with the default bge-small model).

FastEmbedEmbeddingProvider is imported directly where needed so importing
this package does not pull in ONNX Runtime.
"""

from chunkwise.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
