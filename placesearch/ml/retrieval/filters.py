"""
Place Filtering
Shared filter model rendered to keyword-engine filter strings and vector-store filters.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from qdrant_client import models

from ...exceptions import InvalidSearchRequest

logger = logging.getLogger(__name__)

LOCATION_FIELDS = ("city", "province", "district", "ward")


class SortBy(str, Enum):
    """Result orderings accepted by the search API."""

    RELEVANCE = "relevance"
    RATING = "rating"
    DISTANCE = "distance"
    POPULAR = "popular"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortBy":
        """Parse a query-string value, falling back to relevance."""
        try:
            return cls(value) if value else cls.RELEVANCE
        except ValueError:
            logger.debug(f"Unknown sortBy '{value}', using relevance")
            return cls.RELEVANCE


def _quote(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass
class PlaceFilters:
    """
    Filter conditions for place search.

    Example:
        PlaceFilters(lat=10.77, lng=106.70, radius_km=5, categories=["spa"])

    All clauses are ANDed. Location fields match codenames exactly,
    categories match any of the given slugs.
    """

    # Geo radius
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = None

    # Administrative location (codenames)
    city: Optional[str] = None
    province: Optional[str] = None
    district: Optional[str] = None
    ward: Optional[str] = None

    # Category slugs
    categories: Optional[List[str]] = None

    min_rating: Optional[float] = None

    def validate(self) -> None:
        """
        Raises:
            InvalidSearchRequest: If only one coordinate is given or the radius is not positive
        """
        if (self.lat is None) != (self.lng is None):
            raise InvalidSearchRequest("Both lat and lng must be provided together")
        if self.radius_km is not None and self.radius_km <= 0:
            raise InvalidSearchRequest("radius must be positive")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def radius_meters(self) -> Optional[float]:
        if not self.has_coordinates or self.radius_km is None:
            return None
        return self.radius_km * 1000

    def location_values(self) -> List[tuple]:
        return [
            (name, getattr(self, name)) for name in LOCATION_FIELDS if getattr(self, name)
        ]

    def is_empty(self) -> bool:
        return (
            self.radius_meters is None
            and not self.location_values()
            and not self.categories
            and self.min_rating is None
        )

    def to_keyword_filter(self) -> Optional[str]:
        """
        Build a Meilisearch filter expression.

        Returns:
            Filter string or None when no clause applies.
            Example: 'city = "hcm" AND categories IN ["spa", "nail"] AND rating >= 4'
        """
        clauses = []

        if self.radius_meters is not None:
            clauses.append(f"_geoRadius({self.lat}, {self.lng}, {int(round(self.radius_meters))})")

        for name, value in self.location_values():
            clauses.append(f"{name} = {_quote(value)}")

        if self.categories:
            values = ", ".join(_quote(c) for c in self.categories)
            clauses.append(f"categories IN [{values}]")

        if self.min_rating is not None:
            clauses.append(f"rating >= {self.min_rating}")

        return " AND ".join(clauses) if clauses else None

    def to_vector_filter(self) -> Optional[models.Filter]:
        """Build a Qdrant payload filter (None when no clause applies)."""
        must: List[models.Condition] = []

        if self.radius_meters is not None:
            must.append(
                models.FieldCondition(
                    key="location",
                    geo_radius=models.GeoRadius(
                        center=models.GeoPoint(lat=self.lat, lon=self.lng),
                        radius=self.radius_meters,
                    ),
                )
            )

        for name, value in self.location_values():
            must.append(models.FieldCondition(key=name, match=models.MatchValue(value=value)))

        if self.categories:
            must.append(
                models.FieldCondition(
                    key="categories", match=models.MatchAny(any=list(self.categories))
                )
            )

        if self.min_rating is not None:
            must.append(models.FieldCondition(key="rating", range=models.Range(gte=self.min_rating)))

        return models.Filter(must=must) if must else None


def keyword_sort(sort_by: SortBy, lat: Optional[float] = None, lng: Optional[float] = None) -> Optional[List[str]]:
    """
    Map an ordering onto Meilisearch sort rules.

    Relevance uses the engine's ranking rules; distance needs coordinates.
    """
    if sort_by == SortBy.RATING:
        return ["rating:desc"]
    if sort_by == SortBy.POPULAR:
        return ["quantitySold:desc"]
    if sort_by == SortBy.DISTANCE and lat is not None and lng is not None:
        return [f"_geoPoint({lat}, {lng}):asc"]
    return None
