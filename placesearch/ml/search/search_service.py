"""
Search Service
Hybrid place search over the keyword and vector indexes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ...content import ContentStore
from ...exceptions import InvalidSearchRequest
from ...models import Place
from ..embeddings import EmbeddingProvider
from ..retrieval import (
    IndexHit,
    KeywordIndex,
    PlaceFilters,
    RankingConfig,
    SortBy,
    VectorIndex,
    attach_distances,
    hybrid_score,
    keyword_sort,
    sort_hits,
)

logger = logging.getLogger(__name__)


class SearchStrategy(str, Enum):
    """Which index produces the candidate set."""

    KEYWORD_FIRST = "keyword_first"  # Engine relevance, facets, engine-side sort
    VECTOR_FIRST = "vector_first"  # Embedding similarity + text-match re-ranking


@dataclass
class SearchRequest:
    """
    Place search request.

    Coordinates must be given together; when present, results carry a
    distance and, with a radius, are restricted to it.
    """

    query: Optional[str] = None

    # User position
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None

    # Location filters (codenames)
    city: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    ward: Optional[str] = None

    categories: Optional[List[str]] = None
    min_rating: Optional[float] = None

    sort_by: SortBy = SortBy.RELEVANCE
    limit: int = 20
    offset: int = 0
    include_facets: bool = True

    def to_filters(self, default_radius_km: Optional[float] = None) -> PlaceFilters:
        has_coordinates = self.lat is not None and self.lng is not None
        return PlaceFilters(
            lat=self.lat,
            lng=self.lng,
            radius_km=(self.radius_km or default_radius_km) if has_coordinates else None,
            city=self.city,
            province=self.province,
            district=self.district,
            ward=self.ward,
            categories=self.categories or None,
            min_rating=self.min_rating,
        )


@dataclass
class PlaceResult:
    """A resolved place with its ranking signals."""

    place: Place
    score: float
    distance_km: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Place attributes plus `searchScore` and `distance` (km)."""
        data = dict(self.place.attributes) or self.place.model_dump(
            mode="json", by_alias=True, exclude={"attributes"}
        )
        data.setdefault("documentId", self.place.document_id)
        data["searchScore"] = round(float(self.score), 6)
        data["distance"] = round(self.distance_km, 3) if self.distance_km is not None else None
        return data


@dataclass
class SearchOutcome:
    """Ranked page of places."""

    results: List[PlaceResult] = field(default_factory=list)
    total: int = 0
    facets: Optional[Dict[str, Dict[str, int]]] = None
    strategy: Optional[SearchStrategy] = None
    search_time_ms: float = 0.0

    def document_ids(self) -> List[str]:
        return [r.place.document_id for r in self.results]


class SearchService:
    """
    Hybrid search pipeline.

    1. Validate input
    2. Fetch an oversized candidate window from offset 0
    3. Score (engine relevance or hybrid score)
    4. Attach distances, sort
    5. Slice the requested page
    6. Resolve full records for that page only
    """

    def __init__(
        self,
        keyword_index: KeywordIndex,
        vector_index: VectorIndex,
        embedder: EmbeddingProvider,
        content_store: ContentStore,
        strategy: SearchStrategy = SearchStrategy.KEYWORD_FIRST,
        candidate_multiplier: int = 2,
        candidate_pool_size: int = 100,
        max_candidates: int = 1000,
        default_radius_km: float = 10.0,
        default_nearby_radius_km: float = 5.0,
        ranking_config: Optional[RankingConfig] = None,
    ):
        self.keyword_index = keyword_index
        self.vector_index = vector_index
        self.embedder = embedder
        self.content_store = content_store
        self.strategy = SearchStrategy(strategy)
        self.candidate_multiplier = candidate_multiplier
        self.candidate_pool_size = candidate_pool_size
        self.max_candidates = max_candidates
        self.default_radius_km = default_radius_km
        self.default_nearby_radius_km = default_nearby_radius_km
        self.ranking_config = ranking_config or RankingConfig()

        logger.info(f"Search service initialized (strategy={self.strategy.value})")

    def candidate_window(self, offset: int, limit: int) -> int:
        """
        Candidates to fetch from offset 0.

        Constant for every page up to the pool size, so consecutive pages
        are slices of the same ordering.
        """
        wanted = (offset + limit) * self.candidate_multiplier
        return min(self.max_candidates, max(self.candidate_pool_size, wanted))

    async def search(self, request: SearchRequest) -> SearchOutcome:
        """
        Run a search.

        Raises:
            InvalidSearchRequest: Half a coordinate pair or bad paging
            EmbeddingQuotaExceededError: Vector-first query could not be embedded
        """
        start_time = time.time()

        if request.limit < 1 or request.offset < 0:
            raise InvalidSearchRequest("limit must be >= 1 and offset >= 0")
        filters = request.to_filters(self.default_radius_km)
        filters.validate()

        window = self.candidate_window(request.offset, request.limit)
        facets = None

        if self.strategy == SearchStrategy.VECTOR_FIRST:
            hits = await self._vector_candidates(request, filters, window)
            total = len(hits)
        else:
            hits, total, facets = await self._keyword_candidates(request, filters, window)

        if filters.has_coordinates:
            attach_distances(hits, filters.lat, filters.lng)

        # Keyword relevance order comes from the engine's ranking rules
        if not (self.strategy == SearchStrategy.KEYWORD_FIRST and request.sort_by == SortBy.RELEVANCE):
            hits = sort_hits(hits, request.sort_by)

        if not hits:
            return SearchOutcome(
                results=[],
                total=0,
                facets=facets,
                strategy=self.strategy,
                search_time_ms=(time.time() - start_time) * 1000,
            )

        page = hits[request.offset:request.offset + request.limit]
        # Offset past the window: an empty id list must not reach the content store
        results = await self._resolve(page) if page else []

        outcome = SearchOutcome(
            results=results,
            total=total,
            facets=facets,
            strategy=self.strategy,
            search_time_ms=(time.time() - start_time) * 1000,
        )

        logger.info(
            f"Search completed: {len(results)} results (total={total}) "
            f"in {outcome.search_time_ms:.2f}ms",
            extra={
                "strategy": self.strategy.value,
                "sort_by": request.sort_by.value,
                "candidates": len(hits),
            },
        )
        return outcome

    async def nearby(
        self,
        lat: float,
        lng: float,
        radius_km: Optional[float] = None,
        categories: Optional[List[str]] = None,
        min_rating: Optional[float] = None,
        limit: int = 20,
    ) -> SearchOutcome:
        """
        Places within a radius, nearest first.
        """
        start_time = time.time()

        filters = PlaceFilters(
            lat=lat,
            lng=lng,
            radius_km=radius_km or self.default_nearby_radius_km,
            categories=categories or None,
            min_rating=min_rating,
        )
        filters.validate()

        # Scroll is unordered, so read everything in the radius before sorting
        hits = await self.vector_index.scroll_by_filter(filters, limit=self.max_candidates)
        attach_distances(hits, lat, lng)
        hits = sort_hits(hits, SortBy.DISTANCE)

        page = hits[:limit]
        results = await self._resolve(page) if page else []

        return SearchOutcome(
            results=results,
            total=len(hits),
            strategy=SearchStrategy.VECTOR_FIRST,
            search_time_ms=(time.time() - start_time) * 1000,
        )

    async def recommendations(self, place_id: str, limit: int = 10) -> SearchOutcome:
        """
        Places similar to `place_id`, excluding it.

        Raises:
            PlaceNotIndexedError: If the place has no vector
        """
        start_time = time.time()

        hits = await self.vector_index.find_similar(place_id, limit=limit)
        results = await self._resolve(hits) if hits else []

        return SearchOutcome(
            results=results,
            total=len(results),
            strategy=SearchStrategy.VECTOR_FIRST,
            search_time_ms=(time.time() - start_time) * 1000,
        )

    async def _keyword_candidates(self, request: SearchRequest, filters: PlaceFilters, window: int):
        sort = keyword_sort(request.sort_by, filters.lat, filters.lng)
        search_call = self.keyword_index.search(
            request.query, filters=filters, sort=sort, limit=window, offset=0
        )

        if request.include_facets:
            result, facets = await asyncio.gather(
                search_call, self.keyword_index.facets(request.query)
            )
        else:
            result, facets = await search_call, None

        return result.hits, result.total_estimate, facets

    async def _vector_candidates(
        self, request: SearchRequest, filters: PlaceFilters, window: int
    ) -> List[IndexHit]:
        query = (request.query or "").strip()

        if not query:
            return await self.vector_index.scroll_by_filter(filters, limit=window)

        vector = await self.embedder.embed(query)
        hits = await self.vector_index.search(vector, filters=filters, limit=window, offset=0)

        for hit in hits:
            hit.score = hybrid_score(
                similarity=hit.score,
                query=query,
                name=hit.payload.get("name", ""),
                address=hit.payload.get("address", ""),
                config=self.ranking_config,
            )
        return hits

    async def _resolve(self, hits: List[IndexHit]) -> List[PlaceResult]:
        """Load full records for hits, keeping ranking order and dropping vanished places."""
        places = await self.content_store.find_many([hit.document_id for hit in hits])
        by_id = {place.document_id: place for place in places}

        results = []
        for hit in hits:
            place = by_id.get(hit.document_id)
            if place is None:
                logger.debug(f"Indexed place {hit.document_id} missing from content store")
                continue
            results.append(PlaceResult(place=place, score=hit.score, distance_km=hit.distance_km))
        return results
