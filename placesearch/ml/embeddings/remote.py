"""
Remote Embedding Provider
Hosted OpenAI embeddings API.
"""

import logging
from typing import List, Optional

from openai import AsyncOpenAI, RateLimitError

from ...exceptions import ConfigurationError, EmbeddingQuotaExceededError
from ..caching import EmbeddingCache
from .base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_OPENAI_MODEL = "text-embedding-ada-002"

OPENAI_MODEL_DIMENSIONS = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


def _retry_after(error: RateLimitError) -> Optional[int]:
    """Read Retry-After (seconds) from a 429 response if present."""
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    try:
        return int(float(value)) if value is not None else None
    except ValueError:
        return None


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    Embeds text through the OpenAI embeddings endpoint.

    HTTP 429 (rate limit or exhausted quota) is raised as
    EmbeddingQuotaExceededError; other API errors propagate unchanged.
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str],
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
        timeout: float = 10.0,
        cache: Optional[EmbeddingCache] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        if not api_key and client is None:
            raise ConfigurationError("OPENAI_API_KEY is required when EMBEDDING_PROVIDER=openai")

        model_name = model_name or DEFAULT_OPENAI_MODEL
        super().__init__(
            model_name=model_name,
            dimension=dimension or OPENAI_MODEL_DIMENSIONS.get(model_name),
            cache=cache,
        )
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

        logger.info(f"Using OpenAI embeddings: {self.model_name}")

    async def _load(self) -> None:
        if self._client is None:
            # No client-side retries: a 429 must reach the caller as a degraded condition
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)

    async def _embed(self, text: str) -> List[float]:
        try:
            response = await self._client.embeddings.create(model=self.model_name, input=text)
        except RateLimitError as e:
            logger.error(
                "OpenAI API quota exceeded",
                extra={"model": self.model_name, "error": str(e)},
            )
            raise EmbeddingQuotaExceededError(
                "Embedding provider quota exceeded. Please retry later.",
                provider=self.provider_name,
                retry_after=_retry_after(e),
            ) from e

        return list(response.data[0].embedding)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
        await super().aclose()
