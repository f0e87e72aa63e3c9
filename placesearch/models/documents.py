"""
Index document models.
Denormalised projections of a place stored in the keyword and vector indexes.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """Latitude/longitude pair."""

    lat: float
    lng: float


class SearchDocument(BaseModel):
    """
    Keyword index document, keyed by the place document id.

    Location codenames are the filter values; the `*Facet` strings carry
    `"<codename>|<name>"` for facet display.
    """

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    place_id: Optional[int] = Field(default=None, alias="placeId")
    name: str = ""
    description: str = ""

    service_names: List[str] = Field(default_factory=list, alias="serviceNames")
    service_group_names: List[str] = Field(default_factory=list, alias="serviceGroupNames")
    category_names: List[str] = Field(default_factory=list, alias="categoryNames")
    categories: List[str] = Field(default_factory=list)

    address: str = ""
    city: str = ""
    city_facet: str = Field(default="", alias="cityFacet")
    province: str = ""
    province_facet: str = Field(default="", alias="provinceFacet")
    district: str = ""
    district_facet: str = Field(default="", alias="districtFacet")
    ward: str = ""
    ward_facet: str = Field(default="", alias="wardFacet")

    geo: Optional[GeoPoint] = Field(default=None, alias="_geo")
    rating: float = 0.0
    review_count: int = Field(default=0, alias="reviewCount")
    quantity_sold: int = Field(default=0, alias="quantitySold")

    def to_document(self) -> Dict[str, Any]:
        """Engine-ready dict (camelCase keys, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class VectorPayload(SearchDocument):
    """
    Vector point payload.

    Same fields as the keyword document, with geo stored as `location
    {lat, lon}` for radius queries instead of `_geo`.
    """

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"geo"})
        if self.geo is not None:
            payload["location"] = {"lat": self.geo.lat, "lon": self.geo.lng}
        return payload


@dataclass(frozen=True)
class Projection:
    """Everything the indexes need for one published place."""

    document_id: str
    keyword_doc: SearchDocument
    vector_payload: VectorPayload
    search_text: str
