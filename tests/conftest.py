"""Shared pytest fixtures for the rag-indexer test suite."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from typing import Any

import pytest

from rag_indexer.interfaces.document_store import IDocumentStore
from rag_indexer.interfaces.embedding_provider import IEmbeddingProvider
from rag_indexer.interfaces.row_source import IRowSource, Row
from rag_indexer.models.documents import (
    CanonicalDocument,
    StoredChunk,
    StoredDocument,
    StoreStats,
)
from rag_indexer.utils.errors import EmbeddingUnavailableError, FetchError, PersistError

_EMBEDDING_DIM = 16


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Generate a deterministic fixed-length vector by hashing *text*.

    Same text always produces the same unit-length vector.
    """
    raw = hashlib.sha256(text.encode("utf-8")).digest()
    while len(raw) < dim:
        raw += hashlib.sha256(raw).digest()
    values = [(b - 127.5) / 127.5 for b in raw[:dim]]
    magnitude = max(sum(v * v for v in values) ** 0.5, 1e-10)
    return [v / magnitude for v in values]


# ---------------------------------------------------------------------------
# In-memory providers
# ---------------------------------------------------------------------------


class MockEmbeddingProvider(IEmbeddingProvider):
    """In-memory deterministic embedding provider for tests.

    Every text passed to ``embed_single`` is recorded in ``calls``.  Texts
    listed in ``fail_on`` (or every text, with ``fail_all``) raise
    :class:`EmbeddingUnavailableError`.
    """

    def __init__(self, fail_on: set[str] | None = None, fail_all: bool = False) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on or set()
        self.fail_all = fail_all

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_all or text in self.fail_on:
            raise EmbeddingUnavailableError(
                message="mock embedding failure",
                provider_name=self.get_provider_name(),
            )
        return _hash_to_vector(text)

    def get_dimension(self) -> int:
        return _EMBEDDING_DIM

    def get_provider_name(self) -> str:
        return "mock-embedding"

    def is_available(self) -> bool:
        return True


class InMemoryDocumentStore(IDocumentStore):
    """Dict-backed document store that counts every write."""

    def __init__(self) -> None:
        self.documents: dict[tuple[str, str], StoredDocument] = {}
        self.chunks: dict[tuple[str, int], StoredChunk] = {}
        self.document_upserts = 0
        self.chunk_upserts = 0
        self.fail_on_source_ids: set[str] = set()

    async def initialize(self) -> None:
        return None

    async def get_document_fingerprint(self, collection: str, source_id: str) -> str | None:
        document = self.documents.get((collection, source_id))
        return document.content_hash if document else None

    async def upsert_document(self, document: CanonicalDocument, content_hash: str) -> str:
        if document.source_id in self.fail_on_source_ids:
            raise PersistError(message="mock write failure", provider_name="memory_store")
        key = (document.source_collection, document.source_id)
        now = datetime.now(timezone.utc)
        existing = self.documents.get(key)
        self.documents[key] = StoredDocument(
            id=existing.id if existing else str(uuid.uuid4()),
            source_collection=document.source_collection,
            source_id=document.source_id,
            title=document.title,
            content=document.content,
            content_hash=content_hash,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self.document_upserts += 1
        return self.documents[key].id

    async def get_chunk(self, document_id: str, chunk_index: int) -> StoredChunk | None:
        return self.chunks.get((document_id, chunk_index))

    async def upsert_chunk(
        self,
        document_id: str,
        chunk_index: int,
        content: str,
        embedding: list[float] | None,
    ) -> str:
        existing = self.chunks.get((document_id, chunk_index))
        self.chunks[(document_id, chunk_index)] = StoredChunk(
            id=existing.id if existing else str(uuid.uuid4()),
            document_id=document_id,
            chunk_index=chunk_index,
            content=content,
            embedding=embedding,
        )
        self.chunk_upserts += 1
        return self.chunks[(document_id, chunk_index)].id

    async def get_chunk_embedding_count(self, document_id: str) -> tuple[int, int]:
        owned = [c for (doc_id, _), c in self.chunks.items() if doc_id == document_id]
        return len(owned), sum(1 for c in owned if c.has_embedding)

    async def get_stats(self) -> StoreStats:
        by_collection: dict[str, int] = {}
        for collection, _ in self.documents:
            by_collection[collection] = by_collection.get(collection, 0) + 1
        return StoreStats(
            total_documents=len(self.documents),
            total_chunks=len(self.chunks),
            chunks_with_embeddings=sum(1 for c in self.chunks.values() if c.has_embedding),
            documents_by_collection=by_collection,
        )

    def get_provider_name(self) -> str:
        return "memory_store"

    def document_id(self, collection: str, source_id: str) -> str:
        return self.documents[(collection, source_id)].id

    def chunks_of(self, document_id: str) -> list[StoredChunk]:
        owned = [c for (doc_id, _), c in self.chunks.items() if doc_id == document_id]
        return sorted(owned, key=lambda c: c.chunk_index)


class InMemoryRowSource(IRowSource):
    """Row source over a dict of ``{collection: [rows]}``.

    Collections named in ``fail_fetch`` raise on every fetch; those named in
    ``inaccessible`` report as not readable.  Every fetch is recorded in
    ``fetches`` as ``(collection, limit, offset)``.
    """

    def __init__(self, tables: dict[str, list[Any]] | None = None) -> None:
        self.tables = tables or {}
        self.fail_fetch: set[str] = set()
        self.inaccessible: set[str] = set()
        self.fetches: list[tuple[str, int, int]] = []

    async def fetch_rows(self, collection: str, limit: int, offset: int) -> list[Row]:
        self.fetches.append((collection, limit, offset))
        if collection in self.fail_fetch:
            raise FetchError(message=f"mock fetch failure for {collection}")
        return list(self.tables.get(collection, [])[offset : offset + limit])

    async def count_rows(self, collection: str) -> int:
        return len(self.tables.get(collection, []))

    async def is_accessible(self, collection: str) -> bool:
        return collection in self.tables and collection not in self.inaccessible

    def get_provider_name(self) -> str:
        return "memory_source"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MockEmbeddingProvider:
    return MockEmbeddingProvider()


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def row_source() -> InMemoryRowSource:
    return InMemoryRowSource()


@pytest.fixture
def long_text() -> str:
    """Plain prose: 40 sentences of 113 characters each, 4,559 in total."""
    sentences = [
        f"Sentence number {i:02d} reports that the quarterly review covered "
        f"revenue, staffing and the product roadmap in detail."
        for i in range(40)
    ]
    return " ".join(sentences)
