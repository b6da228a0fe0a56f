"""Custom exception hierarchy for rag-indexer.

All application exceptions inherit from :class:`RagIndexerError`, which
carries an optional ``provider_name`` so log output can name the backend
(e.g. "openai", "sqlite_store") that caused the failure.

The hierarchy mirrors the indexing run's failure scopes:

    RagIndexerError  (base -- catch-all for any rag-indexer error)
    +-- ConfigError                (pre-flight: invalid run options / environment)
    +-- UnknownCollectionError     (registry miss -- collection skipped)
    +-- FetchError                 (page retrieval -- aborts one collection)
    +-- TransformError             (row -> document mapping -- one row)
    +-- PersistError               (document/chunk store -- one row)
    +-- EmbeddingUnavailableError  (embedding provider -- one chunk)

Only ``ConfigError`` stops a run.  ``FetchError`` ends the current
collection; everything below it is absorbed by the row or chunk that raised
it and shows up as an error count in the final report.
"""


class RagIndexerError(Exception):
    """Base exception for all rag-indexer errors.

    Subclasses only set ``default_message``.  ``__str__`` prefixes the
    provider name in brackets, e.g. ``[openai_embedding] Rate limit exceeded``.
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
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
# Run-level errors
# ---------------------------------------------------------------------------

class ConfigError(RagIndexerError):
    """Run options or the environment are invalid.

    Always raised before any collection is touched.
    """

    default_message = "Invalid or missing configuration"


# ---------------------------------------------------------------------------
# Collection-level errors
# ---------------------------------------------------------------------------

class UnknownCollectionError(RagIndexerError):
    """The collection name is not in the source registry."""

    default_message = "Unknown source collection"

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
        collection: str | None = None,
    ) -> None:
        self._collection = collection
        super().__init__(message=message, provider_name=provider_name)

    @property
    def collection(self) -> str | None:
        return self._collection


class FetchError(RagIndexerError):
    """A page of source rows could not be retrieved."""

    default_message = "Failed to fetch source rows"


# ---------------------------------------------------------------------------
# Row- and chunk-level errors
# ---------------------------------------------------------------------------

class TransformError(RagIndexerError):
    """A raw row could not be mapped to a canonical document."""

    default_message = "Failed to transform source row"


class PersistError(RagIndexerError):
    """The document/chunk store rejected a read or write."""

    default_message = "Document store operation failed"


class EmbeddingUnavailableError(RagIndexerError):
    """The embedding provider could not produce a vector.

    Covers network failures, quota/rate limits and rejected input alike;
    the orchestrator stores the chunk without a vector and moves on.
    """

    default_message = "Embedding provider unavailable"
