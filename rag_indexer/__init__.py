"""rag-indexer: incremental chunking and embedding of source records for RAG."""

__version__ = "1.0.0"
