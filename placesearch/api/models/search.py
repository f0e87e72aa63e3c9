"""
Search Models
Response envelopes for the place search endpoints.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlacesMeta(BaseModel):
    """Paging metadata."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(..., description="Total matching places (engine estimate for keyword search)")
    limit: int = Field(..., description="Requested page size")
    offset: int = Field(default=0, description="Requested offset")
    sort_by: Optional[str] = Field(default=None, alias="sortBy", description="Applied ordering")
    search_time_ms: Optional[float] = Field(default=None, alias="searchTimeMs")


class PlacesResponse(BaseModel):
    """
    `{data, meta, facets?}` envelope.

    Each item in `data` is the full place record plus `searchScore` and
    `distance` (km, null without user coordinates).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "data": [
                    {
                        "documentId": "abc123",
                        "name": "Relax Spa",
                        "searchScore": 0.93,
                        "distance": 1.42,
                    }
                ],
                "meta": {"total": 1, "limit": 20, "offset": 0, "sortBy": "relevance"},
                "facets": {"cityFacet": {"hcm|Hồ Chí Minh": 12}},
            }
        },
    )

    data: List[Dict[str, Any]] = Field(default_factory=list, description="Ranked places")
    meta: PlacesMeta
    facets: Optional[Dict[str, Dict[str, int]]] = Field(
        default=None, description="Facet counts for the query text, ignoring filters"
    )
