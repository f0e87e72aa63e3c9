"""
Embeddings Module
Pluggable text embedding providers (local model or remote API).
"""

from .base import EmbeddingProvider, preprocess_text
from .factory import create_embedding_provider
from .local import DEFAULT_LOCAL_MODEL, LocalEmbeddingProvider
from .remote import DEFAULT_OPENAI_MODEL, OpenAIEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "preprocess_text",
    "create_embedding_provider",
    "LocalEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "DEFAULT_LOCAL_MODEL",
    "DEFAULT_OPENAI_MODEL",
]
