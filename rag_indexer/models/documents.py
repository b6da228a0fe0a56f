"""Document and chunk models for the RAG index.

Defines Pydantic v2 models for the three shapes a record takes on its way
into the index:

1. :class:`CanonicalDocument` -- the source-agnostic form produced by the
   source registry from one raw row.  Ephemeral; it only feeds the
   fingerprinter and the chunker.
2. :class:`StoredDocument` -- the persisted projection, carrying the
   content fingerprint used to detect changes between runs.
3. :class:`StoredChunk` -- one positioned slice of a stored document plus
   its (optional) embedding vector.

All models are frozen; the store returns fresh instances on every read.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CanonicalDocument(BaseModel):
    """A source row reduced to identity, title and text.

    Identity is ``(source_collection, source_id)``.
    """

    model_config = ConfigDict(frozen=True)

    source_collection: str = Field(description="Name of the collection the row came from.")
    source_id: str = Field(description="Row identifier within its collection.")
    title: str | None = Field(default=None, description="Display title, if the row has one.")
    content: str = Field(default="", description="Free-form text to be chunked and embedded.")

    @property
    def is_empty(self) -> bool:
        """``True`` when the content is blank after trimming."""
        return not self.content.strip()


class StoredDocument(BaseModel):
    """A canonical document as persisted by the document store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Store-assigned document identifier.")
    source_collection: str
    source_id: str
    title: str | None = None
    content: str
    content_hash: str = Field(
        description="Fingerprint of ``content`` at the last successful write."
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


class StoredChunk(BaseModel):
    """A chunk of a stored document.

    ``(document_id, chunk_index)`` is unique, and the indices of one
    document form a contiguous 0-based sequence.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Store-assigned chunk identifier.")
    document_id: str
    chunk_index: int = Field(ge=0)
    content: str
    embedding: list[float] | None = Field(
        default=None,
        description="Embedding vector, or None when none has been computed yet.",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


class StoreStats(BaseModel):
    """Size of the index as seen by the document store."""

    model_config = ConfigDict(frozen=True)

    total_documents: int = Field(default=0, ge=0)
    total_chunks: int = Field(default=0, ge=0)
    chunks_with_embeddings: int = Field(default=0, ge=0)
    documents_by_collection: dict[str, int] = Field(default_factory=dict)
