"""Abstract contracts for every external collaborator.

    Interface               →  Concrete implementations (in chunkwise/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider      →  OpenAIEmbeddingProvider, FastEmbedEmbeddingProvider
    IRerankerProvider       →  FastEmbedReranker
    IVectorIndexProvider    →  QdrantIndexProvider, ChromaDBIndexProvider,
                               InMemoryIndexProvider
    IDocumentStorage        →  LocalDocumentStorage
    IDocumentVectorIndex    →  SQLiteDocumentVectorIndex
    IDocumentLoader         →  PDFLoader, DocxLoader, TextLoader
"""

from chunkwise.interfaces.document_loader import IDocumentLoader
from chunkwise.interfaces.document_storage import IDocumentStorage
from chunkwise.interfaces.document_vector_index import IDocumentVectorIndex
from chunkwise.interfaces.embedding_provider import IEmbeddingProvider
from chunkwise.interfaces.reranker_provider import IRerankerProvider
from chunkwise.interfaces.vector_index_provider import IVectorIndexProvider

__all__ = [
    "IDocumentLoader",
    "IDocumentStorage",
    "IDocumentVectorIndex",
    "IEmbeddingProvider",
    "IRerankerProvider",
    "IVectorIndexProvider",
]
