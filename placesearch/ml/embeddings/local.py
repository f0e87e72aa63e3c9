"""
Local Embedding Provider
Offline multilingual sentence-transformers model (good for Vietnamese place data).
"""

import asyncio
import logging
import time
from typing import List, Optional

import numpy as np

from ...exceptions import ConfigurationError, EmbeddingError
from ..caching import EmbeddingCache
from .base import EmbeddingProvider

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_MODEL = "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2"

# Known output sizes, so the vector collection can be validated before the model loads
LOCAL_MODEL_DIMENSIONS = {
    "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2": 384,
    "paraphrase-multilingual-MiniLM-L12-v2": 384,
    "sentence-transformers/paraphrase-multilingual-mpnet-base-v2": 768,
    "sentence-transformers/all-MiniLM-L6-v2": 384,
    "intfloat/multilingual-e5-small": 384,
    "intfloat/multilingual-e5-base": 768,
}


class LocalEmbeddingProvider(EmbeddingProvider):
    """
    Embeds text with a local sentence-transformers model.

    Output is mean-pooled (per the model's pooling config) and L2-normalised.
    Inference runs in a worker thread so the event loop stays responsive.
    """

    provider_name = "local"

    def __init__(
        self,
        model_name: Optional[str] = None,
        dimension: Optional[int] = None,
        device: Optional[str] = None,
        cache: Optional[EmbeddingCache] = None,
    ):
        model_name = model_name or DEFAULT_LOCAL_MODEL
        super().__init__(
            model_name=model_name,
            dimension=dimension or LOCAL_MODEL_DIMENSIONS.get(model_name),
            cache=cache,
        )
        self.device = device
        self._model = None

        logger.info(f"Using local embeddings: {self.model_name}")

    def _load_model(self):
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name, device=self.device)

    async def _load(self) -> None:
        logger.info("Loading local embedding model (first time may take a few minutes)...")
        start_time = time.time()

        try:
            model = await asyncio.to_thread(self._load_model)
        except Exception as e:
            logger.error(f"Failed to load local embedding model: {e}")
            raise EmbeddingError(f"Failed to load local embedding model '{self.model_name}': {e}") from e

        actual = model.get_sentence_embedding_dimension()
        if self._dimension is None:
            self._dimension = actual
        elif actual != self._dimension:
            raise ConfigurationError(
                f"Local model '{self.model_name}' produces {actual}-dim vectors, "
                f"configured dimension is {self._dimension}"
            )

        self._model = model
        logger.info(f"Local embedding model loaded in {time.time() - start_time:.2f}s (dim={actual})")

    def _encode(self, text: str) -> np.ndarray:
        return self._model.encode(text, normalize_embeddings=True, convert_to_numpy=True)

    async def _embed(self, text: str) -> List[float]:
        embedding = await asyncio.to_thread(self._encode, text)
        return np.asarray(embedding, dtype=np.float32).tolist()
