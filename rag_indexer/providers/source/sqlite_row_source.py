"""SQLite-backed row source.

Each source collection is a table in a SQLite database (``data/source.db``
by default).  Rows are paged in ``rowid`` order so that consecutive offsets
walk a table without gaps or repeats.
"""

from __future__ import annotations

import re
from pathlib import Path

import aiosqlite
import structlog

from rag_indexer.interfaces.row_source import IRowSource, Row
from rag_indexer.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/source.db")

# Table names are interpolated into SQL, so only plain identifiers pass.
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SQLiteRowSource(IRowSource):
    """Pages rows out of the tables of a SQLite database."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def fetch_rows(self, collection: str, limit: int, offset: int) -> list[Row]:
        table = self._table(collection)
        try:
            async with aiosqlite.connect(self._uri(), uri=True) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    f'SELECT * FROM "{table}" ORDER BY rowid LIMIT ? OFFSET ?',
                    (limit, offset),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise FetchError(
                message=f"Cannot read {collection} at offset {offset}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("rows_fetched", collection=collection, offset=offset, count=len(rows))
        return [dict(r) for r in rows]

    async def count_rows(self, collection: str) -> int:
        table = self._table(collection)
        try:
            async with aiosqlite.connect(self._uri(), uri=True) as db:
                cursor = await db.execute(f'SELECT COUNT(*) FROM "{table}"')
                (count,) = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise FetchError(
                message=f"Cannot count {collection}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return count

    async def is_accessible(self, collection: str) -> bool:
        """Return ``True`` if a table named *collection* exists."""
        if not _IDENTIFIER.match(collection) or not self._db_path.exists():
            return False
        try:
            async with aiosqlite.connect(self._uri(), uri=True) as db:
                cursor = await db.execute(
                    "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
                    (collection,),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            logger.warning("source_check_failed", collection=collection, error=str(exc))
            return False
        return row is not None

    def get_provider_name(self) -> str:
        return "sqlite_source"

    def _table(self, collection: str) -> str:
        if not _IDENTIFIER.match(collection):
            raise FetchError(
                message=f"Invalid collection name: {collection!r}",
                provider_name=self.get_provider_name(),
            )
        return collection

    def _uri(self) -> str:
        # Read-only; a missing database file must not be created as a side effect.
        return f"{self._db_path.resolve().as_uri()}?mode=ro"
