"""
Tests for embedding provider initialization, quota handling and selection.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import numpy as np
import pytest
from openai import RateLimitError

from fakes import FakeEmbeddingProvider
from placesearch.exceptions import ConfigurationError, EmbeddingError, EmbeddingQuotaExceededError
from placesearch.ml.embeddings import (
    LocalEmbeddingProvider,
    OpenAIEmbeddingProvider,
    create_embedding_provider,
    preprocess_text,
)


def test_preprocess_collapses_whitespace():
    assert preprocess_text("  Relax \n\t Spa ") == "Relax Spa"
    assert len(preprocess_text("x" * 9000)) == 8000


async def test_concurrent_initialize_loads_once():
    provider = FakeEmbeddingProvider()

    await asyncio.gather(*(provider.embed(f"query {i}") for i in range(10)))

    assert provider.load_count == 1
    assert provider.is_initialized


async def test_failed_initialization_can_be_retried():
    provider = FakeEmbeddingProvider(load_error=RuntimeError("weights missing"))

    with pytest.raises(RuntimeError):
        await provider.initialize()
    assert not provider.is_initialized

    provider.load_error = None
    await provider.initialize()

    assert provider.load_count == 2
    assert provider.is_initialized


async def test_empty_text_rejected():
    with pytest.raises(EmbeddingError):
        await FakeEmbeddingProvider().embed("   ")


async def test_wrong_vector_length_is_configuration_error():
    provider = FakeEmbeddingProvider()
    provider._dimension = 16

    with pytest.raises(ConfigurationError):
        await provider.embed("spa")


def test_unknown_dimension_raises():
    provider = LocalEmbeddingProvider(model_name="some/unknown-model")

    with pytest.raises(ConfigurationError):
        provider.dimension()


class TestLocalProvider:
    def fake_model(self, dimension):
        model = MagicMock()
        model.get_sentence_embedding_dimension.return_value = dimension
        model.encode.return_value = np.ones(dimension, dtype=np.float32) / np.sqrt(dimension)
        return model

    async def test_embed(self, monkeypatch):
        provider = LocalEmbeddingProvider(dimension=4)
        monkeypatch.setattr(provider, "_load_model", lambda: self.fake_model(4))

        vector = await provider.embed("Relax Spa")

        assert len(vector) == 4
        assert np.linalg.norm(vector) == pytest.approx(1.0)

    async def test_dimension_resolved_from_model(self, monkeypatch):
        provider = LocalEmbeddingProvider(model_name="some/unknown-model")
        monkeypatch.setattr(provider, "_load_model", lambda: self.fake_model(12))

        assert await provider.resolve_dimension() == 12

    async def test_dimension_mismatch(self, monkeypatch):
        provider = LocalEmbeddingProvider(dimension=384)
        monkeypatch.setattr(provider, "_load_model", lambda: self.fake_model(768))

        with pytest.raises(ConfigurationError):
            await provider.initialize()

    async def test_load_failure_wrapped(self, monkeypatch):
        provider = LocalEmbeddingProvider(dimension=384)

        def broken():
            raise OSError("no such model")

        monkeypatch.setattr(provider, "_load_model", broken)

        with pytest.raises(EmbeddingError):
            await provider.initialize()


class TestOpenAIProvider:
    def client(self, side_effect=None, vector=None):
        client = MagicMock()
        client.close = AsyncMock()
        if side_effect is not None:
            client.embeddings.create = AsyncMock(side_effect=side_effect)
        else:
            response = MagicMock()
            response.data = [MagicMock(embedding=vector)]
            client.embeddings.create = AsyncMock(return_value=response)
        return client

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            OpenAIEmbeddingProvider(api_key=None)

    def test_known_model_dimension(self):
        provider = OpenAIEmbeddingProvider(api_key="sk-test")
        assert provider.dimension() == 1536

    async def test_embed(self):
        client = self.client(vector=[0.1, 0.2, 0.3])
        provider = OpenAIEmbeddingProvider(api_key=None, dimension=3, client=client)

        assert await provider.embed("spa") == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_awaited_once_with(model="text-embedding-ada-002", input="spa")

    async def test_rate_limit_becomes_quota_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        response = httpx.Response(429, headers={"retry-after": "30"}, request=request)
        error = RateLimitError("You exceeded your current quota", response=response, body=None)
        provider = OpenAIEmbeddingProvider(api_key=None, dimension=3, client=self.client(side_effect=error))

        with pytest.raises(EmbeddingQuotaExceededError) as exc_info:
            await provider.embed("spa")

        assert exc_info.value.provider == "openai"
        assert exc_info.value.retry_after == 30


class TestFactory:
    def test_local(self, settings):
        provider = create_embedding_provider(settings)
        assert isinstance(provider, LocalEmbeddingProvider)
        assert provider.dimension() == 8

    def test_openai_without_key(self, settings):
        settings.embedding_provider = "openai"
        settings.openai_api_key = None

        with pytest.raises(ConfigurationError):
            create_embedding_provider(settings)

    def test_openai(self, settings):
        settings.embedding_provider = "openai"
        settings.openai_api_key = "sk-test"
        settings.embedding_dimension = None

        provider = create_embedding_provider(settings)

        assert isinstance(provider, OpenAIEmbeddingProvider)
        assert provider.dimension() == 1536
