"""
Place models.
Typed view of the CMS place entity consumed by the projector and search service.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlaceStatus(str, Enum):
    """Publication status of a place version."""

    DRAFT = "draft"
    PUBLISHED = "published"


class LocationRef(BaseModel):
    """Province, district or ward reference."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    codename: str = ""


class Address(BaseModel):
    """Nested address of a place."""

    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = ""
    city: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    province: Optional[LocationRef] = None
    district: Optional[LocationRef] = None
    ward: Optional[LocationRef] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Category(BaseModel):
    """Category tag attached to a place."""

    name: str = ""
    slug: Optional[str] = None


class PlaceService(BaseModel):
    """Service offered by a place."""

    service_name: Optional[str] = None
    service_group_name: Optional[str] = None


class Rating(BaseModel):
    """Rating summary."""

    score: float = 0.0
    review_count: int = 0


class Place(BaseModel):
    """
    A listed business location, as read from the content store.

    Only the published version of a place is eligible for indexing.
    `attributes` keeps the raw CMS entity so API responses can return the full
    record; the projector never reads it.
    """

    document_id: str
    id: Optional[int] = None
    status: PlaceStatus = PlaceStatus.PUBLISHED

    name: str = ""
    description: Optional[str] = None
    categories: List[Category] = Field(default_factory=list)
    address: Optional[Address] = None
    services: List[PlaceService] = Field(default_factory=list)
    rating: Optional[Rating] = None
    quantity_sold: int = 0

    attributes: Dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def is_published(self) -> bool:
        return self.status == PlaceStatus.PUBLISHED
