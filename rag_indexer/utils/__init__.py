"""Utility modules for rag-indexer.

- **errors** -- Exception hierarchy rooted at RagIndexerError; one subclass
  per failure scope (run, collection, row, chunk).
- **logging** -- structlog setup with console/JSON renderers and helpers
  for binding per-collection context.
- **concurrency** -- semaphore-bounded ``asyncio.gather`` used to fan out
  embedding calls.
"""

from rag_indexer.utils.concurrency import throttled_gather
from rag_indexer.utils.errors import (
    ConfigError,
    EmbeddingUnavailableError,
    FetchError,
    PersistError,
    RagIndexerError,
    TransformError,
    UnknownCollectionError,
)
from rag_indexer.utils.logging import (
    bind_log_context,
    configure_logging,
    unbind_log_context,
)

__all__ = [
    "ConfigError",
    "EmbeddingUnavailableError",
    "FetchError",
    "PersistError",
    "RagIndexerError",
    "TransformError",
    "UnknownCollectionError",
    "bind_log_context",
    "configure_logging",
    "throttled_gather",
    "unbind_log_context",
]
