"""Row source implementations."""

from rag_indexer.providers.source.sqlite_row_source import SQLiteRowSource

__all__ = ["SQLiteRowSource"]
