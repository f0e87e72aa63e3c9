"""
Embedding provider selection.
"""

import logging
from typing import Optional

from ...config import Settings
from ...exceptions import ConfigurationError
from ..caching import EmbeddingCache
from .base import EmbeddingProvider
from .local import LocalEmbeddingProvider
from .remote import OpenAIEmbeddingProvider

logger = logging.getLogger(__name__)


def create_embedding_provider(
    settings: Settings, cache: Optional[EmbeddingCache] = None
) -> EmbeddingProvider:
    """
    Build the provider named by EMBEDDING_PROVIDER.

    Raises:
        ConfigurationError: Unknown provider or missing credentials
    """
    if settings.embedding_provider == "local":
        return LocalEmbeddingProvider(
            model_name=settings.embedding_model,
            dimension=settings.embedding_dimension,
            device=settings.embedding_device,
            cache=cache,
        )

    if settings.embedding_provider == "openai":
        return OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model_name=settings.embedding_model,
            dimension=settings.embedding_dimension,
            timeout=settings.external_timeout_seconds,
            cache=cache,
        )

    raise ConfigurationError(f"Unsupported embedding provider: {settings.embedding_provider}")
