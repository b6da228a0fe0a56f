"""Abstract base class for text-embedding service providers.

The indexer treats the embedding model as a black box: text in, fixed-length
vector out.  Implementations may wrap OpenAI ``text-embedding-3-small``,
``nomic-embed-text`` served by Ollama, or a test double.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations (rag_indexer/providers/embedding/):
#   OpenAIEmbeddingProvider: text-embedding-3-small (requires API key)
#   NomicEmbeddingProvider: nomic-embed-text via Ollama (local)
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by the indexing pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally if the upstream API has a per-call limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        rag_indexer.utils.errors.EmbeddingUnavailableError
            On any upstream failure (network, quota, rejected input).
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Raises
        ------
        rag_indexer.utils.errors.EmbeddingUnavailableError
            On any upstream failure.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1536`` (``text-embedding-3-small``), ``768``
        (``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and reachable.

        Must not generate an actual embedding.
        """
