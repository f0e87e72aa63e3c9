"""
Data Models Package
Place entity and derived index documents.
"""

from .documents import GeoPoint, Projection, SearchDocument, VectorPayload
from .place import Address, Category, LocationRef, Place, PlaceService, PlaceStatus, Rating

__all__ = [
    "Address",
    "Category",
    "LocationRef",
    "Place",
    "PlaceService",
    "PlaceStatus",
    "Rating",
    "GeoPoint",
    "Projection",
    "SearchDocument",
    "VectorPayload",
]
