"""
Pytest configuration and shared fixtures
"""

import sys
from pathlib import Path

import pytest

# Add project root and the tests directory (for `fakes`) to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import (
    FAKE_DIMENSION,
    FakeContentStore,
    FakeEmbeddingProvider,
    FakeKeywordIndex,
    FakeVectorIndex,
)
from placesearch.config import Settings
from placesearch.container import SearchServices


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        collection_prefix="test_",
        embedding_provider="local",
        embedding_dimension=FAKE_DIMENSION,
        candidate_pool_size=10,
        sync_timeout_seconds=5.0,
        keyword_batch_size=2,
    )


@pytest.fixture
def embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_index() -> FakeVectorIndex:
    return FakeVectorIndex()


@pytest.fixture
def keyword_index() -> FakeKeywordIndex:
    return FakeKeywordIndex()


@pytest.fixture
def content_store() -> FakeContentStore:
    return FakeContentStore()


@pytest.fixture
def services(settings, embedder, keyword_index, vector_index, content_store) -> SearchServices:
    return SearchServices.build(settings, embedder, keyword_index, vector_index, content_store)
