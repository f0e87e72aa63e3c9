"""
Place Search Endpoints
GET /api/v1/places/search, /nearby and /{place_id}/recommendations.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ...exceptions import EmbeddingQuotaExceededError, InvalidSearchRequest, PlaceNotIndexedError
from ...ml.retrieval import SortBy
from ...ml.search import SearchOutcome, SearchRequest, SearchService
from ..dependencies import get_request_id, get_search_service
from ..errors import SearchError
from ..models.search import PlacesMeta, PlacesResponse
from ..params import parse_float, parse_int, parse_list, parse_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/places", tags=["places"])

MAX_LIMIT = 100

# Errors with dedicated handlers; everything else is a backend failure
PASSTHROUGH_ERRORS = (EmbeddingQuotaExceededError, InvalidSearchRequest, PlaceNotIndexedError)


def _response(outcome: SearchOutcome, limit: int, offset: int, sort_by: Optional[str]) -> PlacesResponse:
    return PlacesResponse(
        data=[result.to_dict() for result in outcome.results],
        meta=PlacesMeta(
            total=outcome.total,
            limit=limit,
            offset=offset,
            sort_by=sort_by,
            search_time_ms=round(outcome.search_time_ms, 2),
        ),
        facets=outcome.facets,
    )


@router.get("/search", response_model=PlacesResponse, status_code=status.HTTP_200_OK)
async def search_places(
    q: Optional[str] = Query(None, description="Free-text query"),
    lat: Optional[str] = Query(None, description="User latitude"),
    lng: Optional[str] = Query(None, description="User longitude"),
    radius: Optional[str] = Query(None, description="Search radius in km (default 10)"),
    city: Optional[str] = Query(None),
    province: Optional[str] = Query(None, description="Province codename"),
    district: Optional[str] = Query(None, description="District codename"),
    ward: Optional[str] = Query(None, description="Ward codename"),
    categories: Optional[str] = Query(None, description="Comma-separated category slugs"),
    minRating: Optional[str] = Query(None, description="Minimum rating"),
    sortBy: Optional[str] = Query(None, description="relevance|rating|distance|popular"),
    limit: Optional[str] = Query(None, description="Page size (default 20, max 100)"),
    offset: Optional[str] = Query(None, description="Results to skip"),
    search_service: SearchService = Depends(get_search_service),
    request_id: str = Depends(get_request_id),
) -> PlacesResponse:
    """
    Hybrid place search.

    Numeric parameters that fail to parse are ignored. Sending only one of
    lat/lng is rejected with 400. Quota exhaustion of the embedding provider
    returns 503 with Retry-After.
    """
    request = SearchRequest(
        query=parse_text(q),
        lat=parse_float(lat),
        lng=parse_float(lng),
        radius_km=parse_float(radius),
        city=parse_text(city),
        province=parse_text(province),
        district=parse_text(district),
        ward=parse_text(ward),
        categories=parse_list(categories),
        min_rating=parse_float(minRating),
        sort_by=SortBy.parse(sortBy),
        limit=parse_int(limit, default=20, minimum=1, maximum=MAX_LIMIT),
        offset=parse_int(offset, default=0, minimum=0),
    )

    try:
        outcome = await search_service.search(request)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.error(f"Search failed: {e}", exc_info=True, extra={"request_id": request_id})
        raise SearchError(message="Search failed", details={"error": str(e), "request_id": request_id})

    return _response(outcome, request.limit, request.offset, request.sort_by.value)


@router.get("/nearby", response_model=PlacesResponse, status_code=status.HTTP_200_OK)
async def nearby_places(
    lat: float = Query(..., ge=-90, le=90, description="Latitude"),
    lng: float = Query(..., ge=-180, le=180, description="Longitude"),
    radius: Optional[str] = Query(None, description="Radius in km (default 5)"),
    categories: Optional[str] = Query(None, description="Comma-separated category slugs"),
    minRating: Optional[str] = Query(None, description="Minimum rating"),
    limit: Optional[str] = Query(None, description="Maximum results (default 20, max 100)"),
    search_service: SearchService = Depends(get_search_service),
    request_id: str = Depends(get_request_id),
) -> PlacesResponse:
    """Places around a coordinate, nearest first."""
    page_size = parse_int(limit, default=20, minimum=1, maximum=MAX_LIMIT)

    try:
        outcome = await search_service.nearby(
            lat=lat,
            lng=lng,
            radius_km=parse_float(radius),
            categories=parse_list(categories),
            min_rating=parse_float(minRating),
            limit=page_size,
        )
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.error(f"Nearby search failed: {e}", exc_info=True, extra={"request_id": request_id})
        raise SearchError(message="Nearby search failed", details={"error": str(e), "request_id": request_id})

    return _response(outcome, page_size, 0, SortBy.DISTANCE.value)


@router.get("/{place_id}/recommendations", response_model=PlacesResponse, status_code=status.HTTP_200_OK)
async def place_recommendations(
    place_id: str,
    limit: Optional[str] = Query(None, description="Maximum results (default 10, max 100)"),
    search_service: SearchService = Depends(get_search_service),
    request_id: str = Depends(get_request_id),
) -> PlacesResponse:
    """
    Places similar to the given one. 404 if the place is not indexed.
    """
    page_size = parse_int(limit, default=10, minimum=1, maximum=MAX_LIMIT)

    try:
        outcome = await search_service.recommendations(place_id, limit=page_size)
    except PASSTHROUGH_ERRORS:
        raise
    except Exception as e:
        logger.error(f"Recommendations failed: {e}", exc_info=True, extra={"request_id": request_id})
        raise SearchError(message="Recommendations failed", details={"error": str(e), "request_id": request_id})

    return _response(outcome, page_size, 0, None)
