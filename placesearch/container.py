"""
Service Container
Builds the long-lived clients and services once per process.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings, get_settings
from .content import ContentStore, StrapiContentStore
from .exceptions import ConfigurationError
from .ml.caching import EmbeddingCache
from .ml.embeddings import EmbeddingProvider, create_embedding_provider
from .ml.retrieval import KeywordIndex, VectorIndex
from .ml.search import SearchService
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class SearchServices:
    """
    Process-lifetime wiring of adapters, the search service and the orchestrator.

    Created by the API lifespan and by Celery tasks; tests build one from fakes.
    """

    settings: Settings
    embedder: EmbeddingProvider
    keyword_index: KeywordIndex
    vector_index: VectorIndex
    content_store: ContentStore
    search: SearchService
    orchestrator: SyncOrchestrator

    @classmethod
    def build(
        cls,
        settings: Settings,
        embedder: EmbeddingProvider,
        keyword_index: KeywordIndex,
        vector_index: VectorIndex,
        content_store: ContentStore,
    ) -> "SearchServices":
        """Wire the search service and orchestrator around existing adapters."""
        search = SearchService(
            keyword_index=keyword_index,
            vector_index=vector_index,
            embedder=embedder,
            content_store=content_store,
            strategy=settings.search_strategy,
            candidate_multiplier=settings.candidate_multiplier,
            candidate_pool_size=settings.candidate_pool_size,
            max_candidates=settings.max_candidates,
            default_radius_km=settings.default_search_radius_km,
            default_nearby_radius_km=settings.default_nearby_radius_km,
        )
        orchestrator = SyncOrchestrator(
            content_store=content_store,
            keyword_index=keyword_index,
            vector_index=vector_index,
            embedder=embedder,
            sync_timeout=settings.sync_timeout_seconds,
            batch_size=settings.keyword_batch_size,
            concurrency=settings.sync_concurrency,
        )
        return cls(
            settings=settings,
            embedder=embedder,
            keyword_index=keyword_index,
            vector_index=vector_index,
            content_store=content_store,
            search=search,
            orchestrator=orchestrator,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SearchServices":
        """
        Create real clients from configuration.

        Raises:
            ConfigurationError: Missing credentials for the selected provider
        """
        settings = settings or get_settings()

        cache = None
        if settings.enable_embedding_cache:
            cache = EmbeddingCache(redis_url=settings.redis_url, ttl=settings.embedding_cache_ttl)

        embedder = create_embedding_provider(settings, cache=cache)

        keyword_index = KeywordIndex(
            index_name=settings.index_name,
            host=settings.meili_host,
            api_key=settings.meili_api_key,
            timeout=settings.external_timeout_seconds,
            batch_size=settings.keyword_batch_size,
        )
        vector_index = VectorIndex(
            collection_name=settings.index_name,
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            timeout=settings.external_timeout_seconds,
        )
        content_store = StrapiContentStore(
            base_url=settings.cms_url,
            api_token=settings.cms_api_token,
            timeout=settings.external_timeout_seconds,
            page_size=settings.cms_page_size,
        )

        return cls.build(settings, embedder, keyword_index, vector_index, content_store)

    async def startup(self) -> None:
        """
        Validate and prepare both indexes.

        A dimension mismatch is fatal. Unreachable backends are only logged;
        the adapters create their index lazily on first use.

        Raises:
            ConfigurationError: Vector collection dimension differs from the provider's
        """
        dimension = await self.embedder.resolve_dimension()
        self.vector_index.dimension = dimension

        try:
            await self.vector_index.ensure_collection(dimension)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Vector store unavailable at startup: {e}")
            logger.warning("Vector collection will be created on first use")

        try:
            await self.keyword_index.ensure_index()
        except Exception as e:
            logger.error(f"Keyword engine unavailable at startup: {e}")
            logger.warning("Keyword index settings will be applied on next startup")

        logger.info(
            f"Search services ready (index={self.settings.index_name}, "
            f"embeddings={self.embedder.provider_name}:{self.embedder.model_name}, dim={dimension})"
        )

    async def aclose(self) -> None:
        """Close every client; errors are logged so shutdown continues."""
        for name, closeable in (
            ("embedder", self.embedder),
            ("keyword_index", self.keyword_index),
            ("vector_index", self.vector_index),
            ("content_store", self.content_store),
        ):
            try:
                await closeable.aclose()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")
