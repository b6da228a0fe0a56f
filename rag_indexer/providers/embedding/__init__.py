"""Embedding providers.

Both speak the OpenAI embeddings API through :class:`OpenAICompatibleEmbedder`:

    1. OpenAIEmbeddingProvider: text-embedding-3-small (1536 dims).
       Requires OPENAI_API_KEY; also serves OpenAI-compatible endpoints.
    2. NomicEmbeddingProvider: nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.

Embedding dimensions differ, so switching providers on an existing index
calls for ``--reembed all``.
"""

from rag_indexer.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from rag_indexer.providers.embedding.openai_compatible import OpenAICompatibleEmbedder
from rag_indexer.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["NomicEmbeddingProvider", "OpenAICompatibleEmbedder", "OpenAIEmbeddingProvider"]
