"""OpenAI embedding provider.

Targets api.openai.com by default; setting ``OPENAI_BASE_URL`` points the
same client at any OpenAI-compatible server, in which case the provider
reports itself as ``openai-compatible_embedding``.
"""

from __future__ import annotations

import openai

from rag_indexer.config.settings import Settings
from rag_indexer.providers.embedding.openai_compatible import OpenAICompatibleEmbedder

DEFAULT_MODEL = "text-embedding-3-small"

_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


class OpenAIEmbeddingProvider(OpenAICompatibleEmbedder):
    """Embeddings from the OpenAI API (``text-embedding-3-small`` unless overridden).

    *model* wins over ``openai_embedding_model``.  Unknown model names are
    assumed to return 1536-dimensional vectors.
    """

    batch_limit = 2048

    def __init__(self, settings: Settings, model: str | None = None) -> None:
        self._api_key = settings.openai_api_key
        self._custom_endpoint = bool(settings.openai_base_url)

        client = openai.AsyncOpenAI(
            # The client refuses an empty key; is_available() reports the gap.
            api_key=self._api_key or "missing",
            base_url=settings.openai_base_url or None,
        )
        chosen = model or settings.openai_embedding_model or DEFAULT_MODEL
        super().__init__(client, chosen, _MODEL_DIMENSIONS.get(chosen, 1536))

    def get_provider_name(self) -> str:
        if self._custom_endpoint:
            return "openai-compatible_embedding"
        return "openai_embedding"

    def is_available(self) -> bool:
        """``True`` once an API key is configured; no request is made."""
        return bool(self._api_key)
