"""
Caching Module
Redis-backed caching for query embeddings.
"""

from .embedding_cache import EmbeddingCache

__all__ = ["EmbeddingCache"]
