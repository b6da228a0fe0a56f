"""Local embeddings with ``nomic-embed-text`` served by Ollama."""

from __future__ import annotations

import httpx
import openai

from rag_indexer.config.settings import Settings
from rag_indexer.providers.embedding.openai_compatible import OpenAICompatibleEmbedder

_NOMIC_MODEL = "nomic-embed-text"
_NOMIC_DIMENSION = 768


class NomicEmbeddingProvider(OpenAICompatibleEmbedder):
    """768-dimensional vectors from a local Ollama server; no API key needed."""

    batch_limit = 512

    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.ollama_base_url.rstrip("/")
        client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # ignored by Ollama
        )
        super().__init__(client, _NOMIC_MODEL, _NOMIC_DIMENSION)

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Query ``/api/tags``; any transport failure counts as unavailable."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
        except httpx.TransportError:
            return False
        return response.status_code == 200
