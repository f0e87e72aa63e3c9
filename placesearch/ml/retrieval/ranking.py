"""
Hybrid Ranking
Score fusion, text matching, distance and ordering for place candidates.

Hybrid formula (vector-first strategy):
score = 0.4 × similarity + 0.5 × name_match + 0.1 × address_match
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .filters import SortBy

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


@dataclass
class RankingConfig:
    """Weights for the hybrid score."""

    similarity_weight: float = 0.4
    name_weight: float = 0.5
    address_weight: float = 0.1

    # Text match levels
    exact_match: float = 1.0
    prefix_match: float = 0.8
    substring_match: float = 0.6
    word_overlap_match: float = 0.4

    def __post_init__(self):
        """Validate configuration."""
        total = self.similarity_weight + self.name_weight + self.address_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Ranking weights must sum to 1.0, got {total}")


@dataclass
class IndexHit:
    """Single candidate returned by either index."""

    document_id: str
    score: float
    payload: Dict[str, Any] = field(default_factory=dict)
    distance_km: Optional[float] = None

    @property
    def rating(self) -> float:
        return float(self.payload.get("rating") or 0.0)

    @property
    def quantity_sold(self) -> int:
        return int(self.payload.get("quantitySold") or 0)

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """(lat, lng) from the keyword `_geo` or the vector `location` field."""
        geo = self.payload.get("_geo")
        if geo and geo.get("lat") is not None and geo.get("lng") is not None:
            return float(geo["lat"]), float(geo["lng"])
        location = self.payload.get("location")
        if location and location.get("lat") is not None and location.get("lon") is not None:
            return float(location["lat"]), float(location["lon"])
        return None

    def to_dict(self) -> dict:
        return {
            "document_id": self.document_id,
            "score": float(self.score),
            "distance_km": self.distance_km,
        }


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def text_match_score(query: str, text: str, config: Optional[RankingConfig] = None) -> float:
    """
    Score how well `text` matches the query.

    Returns:
        1.0 exact, 0.8 prefix, 0.6 substring, 0.4 × (query words found / query words), else 0
    """
    config = config or RankingConfig()
    query = " ".join((query or "").lower().split())
    text = " ".join((text or "").lower().split())

    if not query or not text:
        return 0.0
    if text == query:
        return config.exact_match
    if text.startswith(query):
        return config.prefix_match
    if query in text:
        return config.substring_match

    query_words = query.split()
    text_words = set(text.split())
    overlap = sum(1 for word in query_words if word in text_words)
    return config.word_overlap_match * overlap / len(query_words)


def hybrid_score(
    similarity: float,
    query: str,
    name: str,
    address: str,
    config: Optional[RankingConfig] = None,
) -> float:
    """Blend vector similarity with name and address text matches."""
    config = config or RankingConfig()
    return (
        config.similarity_weight * similarity
        + config.name_weight * text_match_score(query, name, config)
        + config.address_weight * text_match_score(query, address, config)
    )


def attach_distances(hits: List[IndexHit], lat: float, lng: float) -> None:
    """Set `distance_km` on hits that carry coordinates."""
    for hit in hits:
        coords = hit.coordinates
        hit.distance_km = haversine_km(lat, lng, coords[0], coords[1]) if coords else None


def sort_hits(hits: List[IndexHit], sort_by: SortBy) -> List[IndexHit]:
    """
    Order candidates (stable).

    relevance: score desc; rating: rating desc; popular: quantity sold desc;
    distance: ascending with unknown distances last.
    """
    if sort_by == SortBy.RATING:
        return sorted(hits, key=lambda h: h.rating, reverse=True)
    if sort_by == SortBy.POPULAR:
        return sorted(hits, key=lambda h: h.quantity_sold, reverse=True)
    if sort_by == SortBy.DISTANCE:
        return sorted(
            hits,
            key=lambda h: (h.distance_km is None, h.distance_km if h.distance_km is not None else 0.0),
        )
    return sorted(hits, key=lambda h: h.score, reverse=True)
