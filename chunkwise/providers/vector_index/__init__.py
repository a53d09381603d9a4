"""Vector index provider implementations.

Three implementations of IVectorIndexProvider, selected by ``VECTOR_DB``:
    - QdrantIndexProvider    - remote Qdrant; the only backend with
      discovery search.
    - ChromaDBIndexProvider  - local persistent ChromaDB at
      CHROMADB_PERSIST_DIR.
    - InMemoryIndexProvider  - process-local; the default for tests.

Qdrant and ChromaDB providers are imported directly where needed so only
the selected backend's client library is loaded.
"""

from chunkwise.providers.vector_index.memory_provider import InMemoryIndexProvider

__all__ = ["InMemoryIndexProvider"]
