"""Unit tests for embedding provider adapters: OpenAI, Nomic."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from rag_indexer.config.settings import Settings
from rag_indexer.utils.errors import EmbeddingUnavailableError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "ollama_base_url": "http://localhost:11434",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _mock_client(vectors: list[list[float]]) -> AsyncMock:
    mock_response = MagicMock()
    mock_response.data = [MagicMock(embedding=v) for v in vectors]
    mock_response.usage = MagicMock(total_tokens=10)

    mock_client = AsyncMock()
    mock_client.embeddings.create = AsyncMock(return_value=mock_response)
    return mock_client


def _api_error() -> openai.APIError:
    return openai.APIError(message="Rate limit", request=MagicMock(), body=None)


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        assert OpenAIEmbeddingProvider(settings).get_provider_name() == "openai_embedding"

    def test_custom_base_url_changes_label(self) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(_settings(openai_base_url="http://proxy/v1"))
        assert provider.get_provider_name() == "openai-compatible_embedding"

    def test_is_available_with_key(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        assert OpenAIEmbeddingProvider(settings).is_available() is True

    def test_is_available_without_key(self) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        assert OpenAIEmbeddingProvider(_settings(openai_api_key="")).is_available() is False

    def test_default_model_and_dimension(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(settings)
        assert provider.model == "text-embedding-3-small"
        assert provider.get_dimension() == 1536

    def test_model_override(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(settings, model="text-embedding-3-large")
        assert provider.model == "text-embedding-3-large"
        assert provider.get_dimension() == 3072

    @pytest.mark.asyncio
    async def test_embed_success(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        mock_client = _mock_client([[0.1] * 1536, [0.2] * 1536])
        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings)
            result = await provider.embed(["hello", "world"])

        assert len(result) == 2
        assert result[1][0] == 0.2
        mock_client.embeddings.create.assert_awaited_once_with(
            input=["hello", "world"], model="text-embedding-3-small"
        )

    @pytest.mark.asyncio
    async def test_embed_empty_makes_no_call(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        mock_client = _mock_client([])
        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings)
            assert await provider.embed([]) == []

        mock_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_single(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=_mock_client([[0.5] * 1536]),
        ):
            provider = OpenAIEmbeddingProvider(settings)
            result = await provider.embed_single("hello")

        assert len(result) == 1536

    @pytest.mark.asyncio
    async def test_embed_error_raises_embedding_unavailable(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_api_error())

        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(EmbeddingUnavailableError) as exc_info:
                await provider.embed(["test"])

        assert exc_info.value.provider_name == "openai_embedding"

    @pytest.mark.asyncio
    async def test_embed_splits_into_batches(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        first, second = MagicMock(), MagicMock()
        first.data = [MagicMock(embedding=[1.0]), MagicMock(embedding=[2.0])]
        second.data = [MagicMock(embedding=[3.0])]
        first.usage = second.usage = None
        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=[first, second])

        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = OpenAIEmbeddingProvider(settings)
            provider.batch_limit = 2
            result = await provider.embed(["a", "b", "c"])

        assert result == [[1.0], [2.0], [3.0]]
        assert mock_client.embeddings.create.await_count == 2
        assert mock_client.embeddings.create.await_args.kwargs["input"] == ["c"]

    @pytest.mark.asyncio
    async def test_short_response_raises(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI",
            return_value=_mock_client([[0.1] * 1536]),
        ):
            provider = OpenAIEmbeddingProvider(settings)
            with pytest.raises(EmbeddingUnavailableError):
                await provider.embed(["one", "two"])


# ======================================================================
# Nomic Embedding Provider
# ======================================================================


class TestNomicEmbeddingProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        assert NomicEmbeddingProvider(settings).get_provider_name() == "nomic_embedding"

    def test_get_dimension(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        assert NomicEmbeddingProvider(settings).get_dimension() == 768

    def test_client_points_at_ollama_v1(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI"
        ) as client_cls:
            NomicEmbeddingProvider(settings)

        client_cls.assert_called_once_with(
            base_url="http://localhost:11434/v1", api_key="ollama"
        )

    def test_is_available_true(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ) as mock_get:
            assert NomicEmbeddingProvider(settings).is_available() is True

        mock_get.assert_called_once_with("http://localhost:11434/api/tags", timeout=3.0)

    def test_is_available_connection_error(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert NomicEmbeddingProvider(settings).is_available() is False

    def test_is_available_timeout(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ReadTimeout("slow"),
        ):
            assert NomicEmbeddingProvider(settings).is_available() is False

    def test_batch_limit(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        assert NomicEmbeddingProvider(settings).batch_limit == 512

    @pytest.mark.asyncio
    async def test_embed_success(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        mock_client = _mock_client([[0.3] * 768])
        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = NomicEmbeddingProvider(settings)
            result = await provider.embed_single("hello")

        assert len(result) == 768
        mock_client.embeddings.create.assert_awaited_once_with(
            input=["hello"], model="nomic-embed-text"
        )

    @pytest.mark.asyncio
    async def test_embed_error(self, settings: Settings) -> None:
        from rag_indexer.providers.embedding.nomic_embedding_provider import (
            NomicEmbeddingProvider,
        )

        mock_client = AsyncMock()
        mock_client.embeddings.create = AsyncMock(side_effect=_api_error())

        with patch(
            "rag_indexer.providers.embedding.nomic_embedding_provider.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            provider = NomicEmbeddingProvider(settings)
            with pytest.raises(EmbeddingUnavailableError):
                await provider.embed(["test"])
