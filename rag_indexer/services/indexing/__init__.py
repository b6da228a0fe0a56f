"""Incremental indexing pipeline for the RAG document index.

Pipeline stages overview:

1. **Transform** (source_registry.py / SourceAdapterRegistry) -- pages raw
   rows out of each source collection and maps them to CanonicalDocument
   objects using per-collection field priority lists.

2. **Fingerprint** (fingerprint.py) -- SHA-256 of the content, compared with
   the digest stored at the last write to skip unchanged documents.

3. **Chunk** (chunker.py / TextChunker) -- sentence-aligned chunks bounded
   by target/min/max sizes, with word-level overlap between neighbours.

4. **Embed** (via IEmbeddingProvider) -- only for chunk positions the run's
   re-embedding mode says need a fresh vector.

5. **Store** (via IDocumentStore) -- idempotent upserts of documents and
   chunks.

The IndexingService class orchestrates all five stages.
"""

from rag_indexer.services.indexing.chunker import TextChunker, chunk_text, split_sentences
from rag_indexer.services.indexing.fingerprint import fingerprint
from rag_indexer.services.indexing.indexing_service import IndexingService, needs_embedding
from rag_indexer.services.indexing.source_registry import (
    DEFAULT_COLLECTION_NAMES,
    DEFAULT_COLLECTIONS,
    CollectionSpec,
    SourceAdapterRegistry,
)

__all__ = [
    "DEFAULT_COLLECTIONS",
    "DEFAULT_COLLECTION_NAMES",
    "CollectionSpec",
    "IndexingService",
    "SourceAdapterRegistry",
    "TextChunker",
    "chunk_text",
    "fingerprint",
    "needs_embedding",
    "split_sentences",
]
