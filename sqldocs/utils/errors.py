"""Custom exception hierarchy for sqldocs.

All application exceptions inherit from :class:`SqlDocsError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "fastembed", "ollama") caused the failure.

The hierarchy is organized by the layer that raises it:

    SqlDocsError  (base -- catch-all for any sqldocs error)
    +-- ConfigurationError       (startup / missing config)
    +-- ProviderUnavailableError (embedding backend down / unreachable)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- EmbeddingError           (any embedding call failure)
    +-- CorpusLoadError          (reference documentation could not be read)
    +-- VectorStoreError         (store invariant violated)
        +-- DimensionMismatchError
        +-- SnapshotImportError

Vector-store errors are fatal: they mean the index is inconsistent and are
always surfaced to the caller.  Embedding errors are expected-degraded
conditions; :class:`~sqldocs.services.retrieval_service.RetrievalService`
absorbs them and falls back to keyword-only retrieval.
"""


class SqlDocsError(Exception):
    """Base exception for all sqldocs errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai_embedding] Rate limit exceeded``.
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
# Configuration / provider errors
# ---------------------------------------------------------------------------

class ConfigurationError(SqlDocsError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(SqlDocsError):
    """Raised when an embedding backend is unreachable or not installed."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(SqlDocsError):
    """Raised when an embedding API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(SqlDocsError):
    """Raised when generating embedding vectors fails."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CorpusLoadError(SqlDocsError):
    """Raised when a reference documentation file cannot be parsed."""

    def __init__(
        self,
        message: str = "Failed to load documentation corpus",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Vector-store errors (fatal)
# ---------------------------------------------------------------------------

class VectorStoreError(SqlDocsError):
    """Raised when a vector-store invariant is violated."""

    def __init__(
        self,
        message: str = "Vector store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DimensionMismatchError(VectorStoreError):
    """Raised when an embedding's length differs from the store's dimension.

    This always indicates a configuration bug (e.g. the embedding provider
    was swapped while an index built with another model is loaded).
    """

    def __init__(self, expected: int, actual: int, document_id: str | None = None) -> None:
        self._expected = expected
        self._actual = actual
        self._document_id = document_id
        detail = f" (document {document_id})" if document_id else ""
        super().__init__(
            message=f"Embedding dimension mismatch: expected {expected}, got {actual}{detail}"
        )

    @property
    def expected(self) -> int:
        return self._expected

    @property
    def actual(self) -> int:
        return self._actual

    @property
    def document_id(self) -> str | None:
        return self._document_id


class SnapshotImportError(VectorStoreError):
    """Raised when an exported vector-store snapshot cannot be imported."""

    def __init__(
        self,
        message: str = "Vector store snapshot is malformed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
