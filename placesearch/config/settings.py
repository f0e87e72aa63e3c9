"""
Service Configuration
Settings for the search backends, embedding provider, content store and API.
"""

import json
from functools import lru_cache
from typing import Annotated, Any, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Place search settings.

    Loaded from environment variables (and `.env`). Field aliases match the
    variable names used by the CMS deployment so both processes can share one
    environment file.
    """

    # API Info
    app_name: str = "Place Search API"
    version: str = "0.1.0"
    description: str = "Hybrid keyword/vector search and index sync for marketplace places"

    # Server settings
    host: str = Field(default="0.0.0.0", alias="API_HOST")
    port: int = Field(default=8000, alias="API_PORT")
    reload: bool = Field(default=False, alias="API_RELOAD")

    # CORS settings
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:1337"],
        alias="API_CORS_ORIGINS",
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = Field(default="INFO", alias="API_LOG_LEVEL")

    # Security (admin + webhook routes)
    api_key_header: str = "X-API-Key"
    require_api_key: bool = Field(default=False, alias="API_REQUIRE_KEY")
    api_keys: Annotated[List[str], NoDecode] = Field(default=[], alias="API_KEYS")

    # Index naming: both engines use PREFIX_COLLECTION + "places"
    collection_prefix: str = Field(default="", alias="PREFIX_COLLECTION")
    index_suffix: str = "places"

    # Keyword engine (Meilisearch)
    meili_host: str = Field(default="http://127.0.0.1:7700", alias="MEILI_HOST")
    meili_api_key: Optional[str] = Field(default=None, alias="MEILI_API_KEY")
    keyword_batch_size: int = Field(default=1000, alias="KEYWORD_BATCH_SIZE")

    # Vector engine (Qdrant)
    qdrant_url: str = Field(default="http://localhost:6333", alias="QDRANT_URL")
    qdrant_api_key: Optional[str] = Field(default=None, alias="QDRANT_API_KEY")

    # Embeddings
    embedding_provider: Literal["local", "openai"] = Field(
        default="local", alias="EMBEDDING_PROVIDER"
    )
    embedding_model: Optional[str] = Field(default=None, alias="EMBEDDING_MODEL")
    embedding_dimension: Optional[int] = Field(default=None, alias="EMBEDDING_DIMENSION")
    embedding_device: Optional[str] = Field(default=None, alias="EMBEDDING_DEVICE")
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")

    # Embedding cache (Redis)
    redis_url: str = Field(default="redis://localhost:6379/1", alias="REDIS_URL")
    enable_embedding_cache: bool = Field(default=False, alias="ENABLE_EMBEDDING_CACHE")
    embedding_cache_ttl: int = Field(default=7 * 24 * 3600, alias="EMBEDDING_CACHE_TTL")

    # Content store (CMS REST API)
    cms_url: str = Field(default="http://localhost:1337", alias="CMS_URL")
    cms_api_token: Optional[str] = Field(default=None, alias="CMS_API_TOKEN")
    cms_page_size: int = Field(default=100, alias="CMS_PAGE_SIZE")

    # Search pipeline
    search_strategy: Literal["keyword_first", "vector_first"] = Field(
        default="keyword_first", alias="SEARCH_STRATEGY"
    )
    candidate_multiplier: int = Field(default=2, alias="CANDIDATE_MULTIPLIER")
    candidate_pool_size: int = Field(default=100, alias="CANDIDATE_POOL_SIZE")
    max_candidates: int = Field(default=1000, alias="MAX_CANDIDATES")
    default_search_radius_km: float = 10.0
    default_nearby_radius_km: float = 5.0
    quota_retry_after_seconds: int = Field(default=60, alias="QUOTA_RETRY_AFTER_SECONDS")

    # Timeouts and sync
    external_timeout_seconds: float = Field(default=10.0, alias="EXTERNAL_TIMEOUT_SECONDS")
    sync_timeout_seconds: float = Field(default=30.0, alias="SYNC_TIMEOUT_SECONDS")
    sync_concurrency: int = Field(default=4, alias="SYNC_CONCURRENCY")

    # Celery
    celery_broker_url: str = Field(default="redis://localhost:6379/0", alias="CELERY_BROKER_URL")

    @field_validator("cors_origins", "api_keys", mode="before")
    @classmethod
    def parse_list(cls, v: Any) -> List[str]:
        """Parse list settings from JSON string or comma-separated list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def index_name(self) -> str:
        """Name shared by the keyword index and the vector collection."""
        return f"{self.collection_prefix}{self.index_suffix}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        validate_default=True,
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    get_settings.cache_clear()
