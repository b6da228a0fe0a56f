"""Shared base for embedding backends that speak the OpenAI embeddings API.

The hosted OpenAI API and Ollama's ``/v1`` endpoint both accept
``embeddings.create(input=[...], model=...)``.  They differ in how the
client is built, in how many inputs one request may carry, and in the
label reported in logs and errors.  Subclasses supply those; batching,
error wrapping and response checking live here.
"""

from __future__ import annotations

from collections.abc import Iterator

import openai
import structlog

from rag_indexer.interfaces.embedding_provider import IEmbeddingProvider
from rag_indexer.utils.errors import EmbeddingUnavailableError

logger = structlog.get_logger(logger_name=__name__)


class OpenAICompatibleEmbedder(IEmbeddingProvider):
    """Batches texts through an ``openai.AsyncOpenAI`` embeddings client.

    Parameters
    ----------
    client:
        Configured async client (real OpenAI or a compatible server).
    model:
        Embedding model name sent with every request.
    dimension:
        Length of the vectors *model* returns.
    """

    #: Maximum number of inputs per ``embeddings.create`` call.
    batch_limit: int = 2048

    def __init__(self, client: openai.AsyncOpenAI, model: str, dimension: int) -> None:
        self._client = client
        self._model = model
        self._dimension = dimension

    @property
    def model(self) -> str:
        return self._model

    def _batches(self, texts: list[str]) -> Iterator[list[str]]:
        for start in range(0, len(texts), self.batch_limit):
            yield texts[start : start + self.batch_limit]

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in order, one request per batch.

        Raises
        ------
        EmbeddingUnavailableError
            On any API failure, or when the server returns a different
            number of vectors than it was sent texts.
        """
        if not texts:
            return []

        name = self.get_provider_name()
        vectors: list[list[float]] = []
        for batch in self._batches(texts):
            try:
                response = await self._client.embeddings.create(input=batch, model=self._model)
            except openai.APIError as exc:
                raise EmbeddingUnavailableError(
                    message=f"{name} API error: {exc}",
                    provider_name=name,
                ) from exc

            vectors.extend(item.embedding for item in response.data)
            logger.debug(
                "embedding_batch",
                provider=name,
                model=self._model,
                batch_size=len(batch),
                tokens=response.usage.total_tokens if response.usage else None,
            )

        if len(vectors) != len(texts):
            raise EmbeddingUnavailableError(
                message=f"Expected {len(texts)} embeddings, got {len(vectors)}",
                provider_name=name,
            )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        vectors = await self.embed([text])
        return vectors[0]

    def get_dimension(self) -> int:
        return self._dimension
