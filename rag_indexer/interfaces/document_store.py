"""Abstract base class for the document/chunk store.

The store is the only writer of persisted index state.  Every mutation is an
upsert keyed by natural identity -- ``(source_collection, source_id)`` for
documents, ``(document_id, chunk_index)`` for chunks -- so retrying any
single write is safe.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rag_indexer.models.documents import CanonicalDocument, StoredChunk, StoreStats


# Concrete implementation: SQLiteDocumentStore (rag_indexer/providers/store/)
class IDocumentStore(ABC):
    """Contract for persisting canonical documents and their chunks.

    All methods are async.  Backend failures raise
    :class:`~rag_indexer.utils.errors.PersistError`.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called before a run."""

    @abstractmethod
    async def get_document_fingerprint(self, collection: str, source_id: str) -> str | None:
        """Return the stored content hash for a document, or ``None`` if unseen."""

    @abstractmethod
    async def upsert_document(self, document: CanonicalDocument, content_hash: str) -> str:
        """Insert or update *document* with its new fingerprint.

        Returns
        -------
        str
            The document id, stable across updates of the same identity.
        """

    @abstractmethod
    async def get_chunk(self, document_id: str, chunk_index: int) -> StoredChunk | None:
        """Return the chunk stored at ``(document_id, chunk_index)``, if any."""

    @abstractmethod
    async def upsert_chunk(
        self,
        document_id: str,
        chunk_index: int,
        content: str,
        embedding: list[float] | None,
    ) -> str:
        """Insert or overwrite the chunk at ``(document_id, chunk_index)``.

        Returns
        -------
        str
            The chunk id.
        """

    @abstractmethod
    async def get_chunk_embedding_count(self, document_id: str) -> tuple[int, int]:
        """Return ``(total_chunks, chunks_with_embeddings)`` for one document."""

    @abstractmethod
    async def get_stats(self) -> StoreStats:
        """Return aggregate counts across the whole store."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
