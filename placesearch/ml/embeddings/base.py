"""
Embedding Provider
Common contract for turning place and query text into dense vectors.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...exceptions import ConfigurationError, EmbeddingError
from ..caching import EmbeddingCache

logger = logging.getLogger(__name__)

# Hard cap on characters sent to a model; both providers truncate tokens anyway
MAX_TEXT_CHARS = 8000


def preprocess_text(text: str) -> str:
    """
    Normalise text before embedding.

    Only collapses whitespace and truncates; case and diacritics are kept
    because the multilingual models rely on them.
    """
    text = " ".join((text or "").split())
    if len(text) > MAX_TEXT_CHARS:
        logger.warning(f"Embedding text truncated to {MAX_TEXT_CHARS} characters")
        text = text[:MAX_TEXT_CHARS]
    return text


class EmbeddingProvider(ABC):
    """
    Base class for embedding providers.

    Initialization is lazy and memoized: the first caller starts loading and
    every concurrent caller awaits the same future. A failed load clears the
    future so that a later call can try again.
    """

    provider_name: str = "base"

    def __init__(
        self,
        model_name: str,
        dimension: Optional[int] = None,
        cache: Optional[EmbeddingCache] = None,
    ):
        """
        Initialize embedding provider.

        Args:
            model_name: Model identifier understood by the backend
            dimension: Vector size (None when it can only be read from the loaded model)
            cache: Optional embedding cache
        """
        self.model_name = model_name
        self.cache = cache
        self._dimension = dimension
        self._init_future: Optional[asyncio.Future] = None
        self._ready = False

    @property
    def is_initialized(self) -> bool:
        return self._ready

    def dimension(self) -> int:
        """
        Get embedding vector dimension.

        Raises:
            ConfigurationError: If the dimension is not known before loading
        """
        if self._dimension is None:
            raise ConfigurationError(
                f"Embedding dimension for model '{self.model_name}' is unknown; "
                "set EMBEDDING_DIMENSION or initialize the provider first"
            )
        return self._dimension

    async def resolve_dimension(self) -> int:
        """Return the dimension, loading the model first if that is the only way to know it."""
        if self._dimension is None:
            await self.initialize()
        return self.dimension()

    async def initialize(self) -> None:
        """Load the model / client once per process."""
        if self._ready:
            return

        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._load())

        future = self._init_future
        try:
            await asyncio.shield(future)
        except Exception:
            if self._init_future is future:
                self._init_future = None
            raise

        self._ready = True

    async def embed(self, text: str) -> List[float]:
        """
        Encode text to an embedding vector.

        Args:
            text: Free text (place search text or user query)

        Returns:
            Embedding vector

        Raises:
            EmbeddingError: If text is empty or the provider fails
            EmbeddingQuotaExceededError: If a remote provider is out of quota
        """
        cleaned = preprocess_text(text)
        if not cleaned:
            raise EmbeddingError("Cannot embed empty text")

        if self.cache is not None:
            dimension = await self.resolve_dimension()
            cached = await self.cache.get(self.model_name, cleaned)
            if cached is not None:
                if len(cached) == dimension:
                    return cached
                # Written under another EMBEDDING_DIMENSION for the same model name
                logger.warning(
                    f"Ignoring cached embedding with {len(cached)} dimensions, expected {dimension}"
                )

        await self.initialize()
        vector = await self._embed(cleaned)

        if len(vector) != self.dimension():
            raise ConfigurationError(
                f"Model '{self.model_name}' returned {len(vector)} dimensions, "
                f"expected {self.dimension()}"
            )

        if self.cache is not None:
            await self.cache.set(self.model_name, cleaned, vector)

        return vector

    def info(self) -> Dict[str, Any]:
        """Provider description for status endpoints."""
        return {
            "provider": self.provider_name,
            "model": self.model_name,
            "dimension": self._dimension,
            "initialized": self._ready,
        }

    async def aclose(self) -> None:
        """Release provider resources."""
        if self.cache is not None:
            await self.cache.aclose()

    @abstractmethod
    async def _load(self) -> None:
        """Load model weights or create the API client."""

    @abstractmethod
    async def _embed(self, text: str) -> List[float]:
        """Encode preprocessed text."""
