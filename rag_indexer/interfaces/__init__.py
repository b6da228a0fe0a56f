"""Public interface definitions for the indexer's external collaborators.

The orchestrator never talks to a concrete backend.  It receives objects
implementing these ABCs through its constructor, so tests can pass in-memory
fakes and deployments can swap backends without touching pipeline code.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementations (in rag_indexer/providers/)
    ─────────────────────────────────────────────────────────────────────
    IEmbeddingProvider   →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IDocumentStore       →  SQLiteDocumentStore
    IRowSource           →  SQLiteRowSource
"""

from rag_indexer.interfaces.document_store import IDocumentStore
from rag_indexer.interfaces.embedding_provider import IEmbeddingProvider
from rag_indexer.interfaces.row_source import IRowSource, Row

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "IRowSource",
    "Row",
]
