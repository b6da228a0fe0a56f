"""Pydantic models shared across the indexer."""

from rag_indexer.models.documents import (
    CanonicalDocument,
    StoredChunk,
    StoredDocument,
    StoreStats,
)
from rag_indexer.models.indexing import (
    IndexingReport,
    IndexingStats,
    ReembedMode,
    RowOutcome,
    RowResult,
    RunConfig,
)

__all__ = [
    "CanonicalDocument",
    "IndexingReport",
    "IndexingStats",
    "ReembedMode",
    "RowOutcome",
    "RowResult",
    "RunConfig",
    "StoreStats",
    "StoredChunk",
    "StoredDocument",
]
