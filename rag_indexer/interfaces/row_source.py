"""Abstract base class for raw source-row retrieval.

A row source knows how to page through the rows of a named collection; it
knows nothing about which fields hold the title or the text.  That mapping
lives in :mod:`rag_indexer.services.indexing.source_registry`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Row = dict[str, Any]


# Concrete implementation: SQLiteRowSource (rag_indexer/providers/source/)
class IRowSource(ABC):
    """Contract for paginated access to source collections."""

    @abstractmethod
    async def fetch_rows(self, collection: str, limit: int, offset: int) -> list[Row]:
        """Return up to *limit* rows of *collection* starting at *offset*.

        Rows come back in a stable order so that consecutive offsets walk
        the collection without gaps.  An empty list means end of data.

        Raises
        ------
        rag_indexer.utils.errors.FetchError
            If the rows cannot be retrieved.
        """

    @abstractmethod
    async def count_rows(self, collection: str) -> int:
        """Return the number of rows in *collection*.

        Raises
        ------
        rag_indexer.utils.errors.FetchError
            If the collection cannot be counted.
        """

    @abstractmethod
    async def is_accessible(self, collection: str) -> bool:
        """Return ``True`` if *collection* exists and can be read."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this row source."""
