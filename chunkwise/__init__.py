"""chunkwise: content-aware text chunking and vector-store orchestration for RAG."""

__version__ = "0.1.0"
