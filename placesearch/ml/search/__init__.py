"""
Search Module
Hybrid search pipeline over the place indexes.
"""

from .search_service import (
    PlaceResult,
    SearchOutcome,
    SearchRequest,
    SearchService,
    SearchStrategy,
)

__all__ = [
    "PlaceResult",
    "SearchOutcome",
    "SearchRequest",
    "SearchService",
    "SearchStrategy",
]
