"""
Strapi Content Store
Fetches published places from the CMS REST API.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from ..models import Address, Category, LocationRef, Place, PlaceService, PlaceStatus, Rating
from .store import ContentStore

logger = logging.getLogger(__name__)

LOCATION_FIELDS = {"fields": ["name", "codename"]}

PLACE_POPULATE = {
    "category_places": {"fields": ["name", "slug"]},
    "general_info": {
        "populate": {
            "address": {
                "populate": {
                    "province": LOCATION_FIELDS,
                    "district": LOCATION_FIELDS,
                    "ward": LOCATION_FIELDS,
                }
            },
            "rating": True,
        }
    },
    "services": {"fields": ["service_name", "service_group_name"]},
}


def encode_params(value: Any, prefix: str) -> List[Tuple[str, str]]:
    """
    Encode nested dicts/lists in the bracket query syntax the CMS expects.

    Example:
        encode_params({"a": {"fields": ["x"]}}, "populate")
        -> [("populate[a][fields][0]", "x")]
    """
    if isinstance(value, dict):
        params = []
        for key, item in value.items():
            params.extend(encode_params(item, f"{prefix}[{key}]"))
        return params
    if isinstance(value, (list, tuple)):
        params = []
        for index, item in enumerate(value):
            params.extend(encode_params(item, f"{prefix}[{index}]"))
        return params
    if isinstance(value, bool):
        return [(prefix, "true" if value else "false")]
    return [(prefix, str(value))]


def flatten_rich_text(value: Any) -> str:
    """
    Plain text from a CMS rich-text value.

    Accepts a string or the block structure (lists of dicts with `text` or
    `children`); paragraphs are joined with newlines.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        parts = [flatten_rich_text(item) for item in value]
        return "\n".join(part for part in parts if part)
    if isinstance(value, dict):
        if "text" in value:
            return str(value.get("text") or "")
        return "".join(flatten_rich_text(child) for child in value.get("children") or [])
    return str(value)


def _location(data: Optional[Dict[str, Any]]) -> Optional[LocationRef]:
    if not data:
        return None
    return LocationRef(name=data.get("name") or "", codename=data.get("codename") or "")


def _float(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def parse_place(entity: Dict[str, Any]) -> Place:
    """Convert a populated CMS place entity into a Place."""
    general = entity.get("general_info") or {}
    address_data = general.get("address") or {}
    rating_data = general.get("rating") or {}

    address = None
    if address_data:
        address = Address(
            address=address_data.get("address") or "",
            city=address_data.get("city") or "",
            latitude=_float(address_data.get("latitude")),
            longitude=_float(address_data.get("longitude")),
            province=_location(address_data.get("province")),
            district=_location(address_data.get("district")),
            ward=_location(address_data.get("ward")),
        )

    rating = None
    if rating_data:
        rating = Rating(
            score=_float(rating_data.get("score")) or 0.0,
            review_count=int(rating_data.get("review_count") or rating_data.get("total_reviews") or 0),
        )

    description = entity.get("description") or entity.get("service_group_description")

    return Place(
        document_id=str(entity["documentId"]),
        id=entity.get("id"),
        status=PlaceStatus.PUBLISHED if entity.get("publishedAt") else PlaceStatus.DRAFT,
        name=entity.get("name") or "",
        description=flatten_rich_text(description) or None,
        categories=[
            Category(name=c.get("name") or "", slug=c.get("slug"))
            for c in entity.get("category_places") or []
        ],
        address=address,
        services=[
            PlaceService(
                service_name=s.get("service_name"),
                service_group_name=s.get("service_group_name"),
            )
            for s in entity.get("services") or []
        ],
        rating=rating,
        quantity_sold=int(entity.get("quantity_sold") or 0),
        attributes=entity,
    )


class StrapiContentStore(ContentStore):
    """
    Content store over the CMS REST API (`/api/places`).

    Only published versions are requested; relations are deep-populated.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 10.0,
        page_size: int = 100,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        self.page_size = page_size
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), headers=headers, timeout=timeout
        )
        self._populate = encode_params(PLACE_POPULATE, "populate")

    async def find_one(self, document_id: str) -> Optional[Place]:
        params = [("status", "published"), *self._populate]
        response = await self.client.get(f"/api/places/{document_id}", params=params)
        if response.status_code == 404:
            return None
        response.raise_for_status()

        data = response.json().get("data")
        if not data:
            return None
        return parse_place(data)

    async def find_many(self, document_ids: Optional[Sequence[str]] = None) -> List[Place]:
        if document_ids is not None and len(document_ids) == 0:
            return []

        base_params = [("status", "published"), *self._populate]
        if document_ids is not None:
            base_params.extend(encode_params(list(document_ids), "filters[documentId][$in]"))
            page_size = max(len(document_ids), 1)
        else:
            page_size = self.page_size

        places: List[Place] = []
        page = 1
        while True:
            params = base_params + [
                ("pagination[page]", str(page)),
                ("pagination[pageSize]", str(page_size)),
            ]
            response = await self.client.get("/api/places", params=params)
            response.raise_for_status()
            body = response.json()

            places.extend(parse_place(item) for item in body.get("data") or [])

            pagination = (body.get("meta") or {}).get("pagination") or {}
            if page >= int(pagination.get("pageCount") or 1):
                break
            page += 1

        logger.debug(f"Fetched {len(places)} places from CMS")
        return places

    async def aclose(self) -> None:
        await self.client.aclose()
