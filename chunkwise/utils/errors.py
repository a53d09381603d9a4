"""Custom exception hierarchy for chunkwise.

All application exceptions inherit from :class:`ChunkwiseError`, which
carries an optional ``provider_name`` so error handlers can identify which
backend (e.g. "openai", "qdrant", "pymupdf") caused the failure.

The hierarchy is organized by pipeline stage:

    ChunkwiseError  (base -- catch-all for any chunkwise error)
    +-- InputError               (missing / malformed caller input)
    +-- ExtractionError          (document loading / conversion)
    +-- EmbeddingError           (embedding backend failure or empty result)
    +-- VectorIndexError         (vector index operation failure)
    |   +-- IndexUnavailableError    (liveness check failed)
    |   +-- UpsertError              (batch insert exhausted its retries)
    |   +-- NamespaceConflictError   (namespace created concurrently)
    +-- NotFoundError            (namespace / document absent)
    +-- RerankError              (reranker failure)
    +-- ConfigurationError       (invalid splitter or startup config)

Orchestration and search catch these at their public boundary and turn
them into structured results; only configuration errors propagate to the
caller that built the bad configuration.
"""


class ChunkwiseError(Exception):
    """Base exception for all chunkwise errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which backend triggered the error.  The
    ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[qdrant] Collection not found``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input / extraction errors
# ---------------------------------------------------------------------------

class InputError(ChunkwiseError):
    """Raised when a required argument is missing or malformed."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(ChunkwiseError):
    """Raised when a document loader cannot extract text from a file."""

    def __init__(
        self,
        message: str = "Document text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding / vector index errors
# ---------------------------------------------------------------------------

class EmbeddingError(ChunkwiseError):
    """Raised when an embedding call fails or returns no vectors."""

    def __init__(
        self,
        message: str = "Embedding failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class VectorIndexError(ChunkwiseError):
    """Raised when a vector index operation fails."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class IndexUnavailableError(VectorIndexError):
    """Raised when the vector index does not answer its liveness check."""

    def __init__(
        self,
        message: str = "Vector index is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UpsertError(VectorIndexError):
    """Raised when a batch insert is still failing after every retry."""

    def __init__(
        self,
        message: str = "Failed to insert batch",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NamespaceConflictError(VectorIndexError):
    """Raised when a namespace is created while it already exists.

    Namespace creation is check-then-create, so two concurrent ingests can
    race; callers treat this error as "already created".
    """

    def __init__(
        self,
        message: str = "Namespace already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(ChunkwiseError):
    """Raised when a namespace or document does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RerankError(ChunkwiseError):
    """Raised when the reranker fails to score a candidate set."""

    def __init__(
        self,
        message: str = "Rerank failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(ChunkwiseError):
    """Raised when configuration is invalid, e.g. overlap >= chunk size."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
