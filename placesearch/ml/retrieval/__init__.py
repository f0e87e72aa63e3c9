"""
Retrieval Module
Keyword and vector index adapters, shared filters and hybrid ranking.
"""

from .filters import PlaceFilters, SortBy, keyword_sort
from .ids import uuid_of
from .keyword_index import FACET_FIELDS, KeywordIndex, KeywordSearchResult
from .ranking import (
    IndexHit,
    RankingConfig,
    attach_distances,
    haversine_km,
    hybrid_score,
    sort_hits,
    text_match_score,
)
from .vector_index import VectorIndex

__all__ = [
    "PlaceFilters",
    "SortBy",
    "keyword_sort",
    "uuid_of",
    "KeywordIndex",
    "KeywordSearchResult",
    "FACET_FIELDS",
    "IndexHit",
    "RankingConfig",
    "attach_distances",
    "haversine_km",
    "hybrid_score",
    "sort_hits",
    "text_match_score",
    "VectorIndex",
]
