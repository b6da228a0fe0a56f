"""SQLite-backed document and chunk store.

Persists canonical documents and their chunks to a local SQLite database at
``data/rag_index.db``.  Uses ``aiosqlite`` for async I/O; one connection is
opened per call.  Embedding vectors are stored as JSON arrays.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from rag_indexer.interfaces.document_store import IDocumentStore
from rag_indexer.models.documents import (
    CanonicalDocument,
    StoredChunk,
    StoredDocument,
    StoreStats,
)
from rag_indexer.utils.errors import PersistError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/rag_index.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id                 TEXT PRIMARY KEY,
    source_collection  TEXT NOT NULL,
    source_id          TEXT NOT NULL,
    title              TEXT,
    content            TEXT NOT NULL,
    content_hash       TEXT NOT NULL,
    created_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at         TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(source_collection, source_id)
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    id           TEXT PRIMARY KEY,
    document_id  TEXT    NOT NULL REFERENCES documents(id),
    chunk_index  INTEGER NOT NULL,
    content      TEXT    NOT NULL,
    embedding    TEXT,
    created_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at   TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(document_id, chunk_index)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(source_collection);",
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id);",
]

_UPSERT_DOCUMENT_SQL = """\
INSERT INTO documents (id, source_collection, source_id, title, content, content_hash)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(source_collection, source_id)
DO UPDATE SET title        = excluded.title,
              content      = excluded.content,
              content_hash = excluded.content_hash,
              updated_at   = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_UPSERT_CHUNK_SQL = """\
INSERT INTO chunks (id, document_id, chunk_index, content, embedding)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(document_id, chunk_index)
DO UPDATE SET content    = excluded.content,
              embedding  = excluded.embedding,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_DOCUMENT_SQL = """\
SELECT id, source_collection, source_id, title, content, content_hash, created_at, updated_at
FROM documents
WHERE source_collection = ? AND source_id = ?;
"""

_SELECT_CHUNK_SQL = """\
SELECT id, document_id, chunk_index, content, embedding, created_at, updated_at
FROM chunks
WHERE document_id = ? AND chunk_index = ?;
"""


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed persistence for documents and chunks."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents/chunks tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                for table_sql in _CREATE_TABLES_SQL:
                    await db.execute(table_sql)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise self._persist_error("initialize", exc) from exc
        logger.info("document_store_initialized", path=str(self._db_path))

    async def get_document_fingerprint(self, collection: str, source_id: str) -> str | None:
        document = await self.get_document(collection, source_id)
        return document.content_hash if document else None

    async def get_document(self, collection: str, source_id: str) -> StoredDocument | None:
        """Return the stored projection of a document, or ``None`` if unseen."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_DOCUMENT_SQL, (collection, source_id))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("get_document", exc) from exc
        return StoredDocument(**dict(row)) if row else None

    async def upsert_document(self, document: CanonicalDocument, content_hash: str) -> str:
        """Store or update a document.  Returns its (stable) id."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute(
                    _UPSERT_DOCUMENT_SQL,
                    (
                        str(uuid.uuid4()),
                        document.source_collection,
                        document.source_id,
                        document.title,
                        document.content,
                        content_hash,
                    ),
                )
                await db.commit()
                cursor = await db.execute(
                    "SELECT id FROM documents WHERE source_collection = ? AND source_id = ?",
                    (document.source_collection, document.source_id),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("upsert_document", exc) from exc

        logger.debug(
            "document_upserted",
            collection=document.source_collection,
            source_id=document.source_id,
            document_id=row["id"],
        )
        return row["id"]

    async def get_chunk(self, document_id: str, chunk_index: int) -> StoredChunk | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(_SELECT_CHUNK_SQL, (document_id, chunk_index))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("get_chunk", exc) from exc
        return _row_to_chunk(dict(row)) if row else None

    async def upsert_chunk(
        self,
        document_id: str,
        chunk_index: int,
        content: str,
        embedding: list[float] | None,
    ) -> str:
        """Store or overwrite the chunk at ``(document_id, chunk_index)``."""
        encoded = json.dumps(embedding) if embedding is not None else None
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute(
                    _UPSERT_CHUNK_SQL,
                    (str(uuid.uuid4()), document_id, chunk_index, content, encoded),
                )
                await db.commit()
                cursor = await db.execute(
                    "SELECT id FROM chunks WHERE document_id = ? AND chunk_index = ?",
                    (document_id, chunk_index),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("upsert_chunk", exc) from exc
        return row["id"]

    async def get_chunk_embedding_count(self, document_id: str) -> tuple[int, int]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT COUNT(*), COUNT(embedding) FROM chunks WHERE document_id = ?",
                    (document_id,),
                )
                total, with_embedding = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("get_chunk_embedding_count", exc) from exc
        return total, with_embedding

    async def get_stats(self) -> StoreStats:
        """Return aggregate document and chunk counts."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                cursor = await db.execute(
                    "SELECT source_collection, COUNT(*) FROM documents "
                    "GROUP BY source_collection ORDER BY source_collection"
                )
                by_collection = {name: count for name, count in await cursor.fetchall()}
                cursor = await db.execute("SELECT COUNT(*), COUNT(embedding) FROM chunks")
                total_chunks, with_embeddings = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise self._persist_error("get_stats", exc) from exc

        return StoreStats(
            total_documents=sum(by_collection.values()),
            total_chunks=total_chunks,
            chunks_with_embeddings=with_embeddings,
            documents_by_collection=by_collection,
        )

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return "sqlite_document_store"

    def _persist_error(self, operation: str, exc: Exception) -> PersistError:
        logger.error(
            "document_store_error",
            operation=operation,
            path=str(self._db_path),
            error=str(exc),
        )
        return PersistError(
            message=f"{operation} failed: {exc}",
            provider_name=self.get_provider_name(),
        )


def _row_to_chunk(row: dict[str, Any]) -> StoredChunk:
    raw = row.pop("embedding")
    return StoredChunk(**row, embedding=json.loads(raw) if raw is not None else None)
