"""
Embedding Cache
Caches text embeddings in Redis so repeated queries skip the model.
"""

import hashlib
import logging
from typing import List, Optional

import numpy as np
import redis.asyncio as redis

logger = logging.getLogger(__name__)


class EmbeddingCache:
    """
    Redis-backed cache of text embeddings with TTL.

    Keys are ``embedding:text:{model}:{sha256(text)}``; values are raw
    float64 bytes. Redis failures degrade to a cache miss.
    """

    KEY_PREFIX = "embedding:text:"

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        ttl: int = 86400,
        client: Optional[redis.Redis] = None,
    ):
        """
        Initialize embedding cache.

        Args:
            redis_url: Redis connection URL
            ttl: Time-to-live in seconds
            client: Existing async Redis client
        """
        self.ttl = ttl
        self.client = client or redis.from_url(
            redis_url,
            decode_responses=False,
            socket_timeout=5,
            socket_connect_timeout=5,
        )

        logger.info("Embedding cache initialized")

    def _key(self, model_name: str, text: str) -> str:
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return f"{self.KEY_PREFIX}{model_name}:{digest}"

    async def get(self, model_name: str, text: str) -> Optional[List[float]]:
        """
        Get cached embedding.

        Returns:
            Embedding or None if not cached (or Redis is unreachable)
        """
        key = self._key(model_name, text)
        try:
            data = await self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Redis GET error for key '{key}': {e}")
            return None

        if data is None:
            logger.debug(f"Cache MISS for {key}")
            return None

        logger.debug(f"Cache HIT for {key}")
        return np.frombuffer(data, dtype=np.float64).tolist()

    async def set(self, model_name: str, text: str, embedding: List[float]) -> bool:
        """
        Cache an embedding.

        Returns:
            True if stored
        """
        key = self._key(model_name, text)
        try:
            await self.client.set(key, np.asarray(embedding, dtype=np.float64).tobytes(), ex=self.ttl)
            return True
        except redis.RedisError as e:
            logger.warning(f"Redis SET error for key '{key}': {e}")
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def aclose(self) -> None:
        await self.client.aclose()
