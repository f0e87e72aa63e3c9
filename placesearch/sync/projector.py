"""
Document Projector
Flattens a place into the keyword document, vector payload and search text.
"""

from typing import Iterable, List, Optional

from ..models import GeoPoint, LocationRef, Place, Projection, SearchDocument, VectorPayload


def _unique(values: Iterable[Optional[str]]) -> List[str]:
    """Trim, drop empties and de-duplicate (case-sensitive, first occurrence wins)."""
    seen = set()
    result = []
    for value in values:
        value = (value or "").strip()
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _codename(ref: Optional[LocationRef]) -> str:
    if ref is None:
        return ""
    return ref.codename or ref.name


def _facet(codename: str, name: str) -> str:
    """Facet value `"<codename>|<name>"`, or "" when the location is unknown."""
    if not codename and not name:
        return ""
    return f"{codename}|{name or codename}"


def build_search_text(place: Place) -> str:
    """
    Deterministic text that is embedded for the place.

    Order: name, service names, service-group names, category names,
    description, address, city, province, district, ward.
    """
    address = place.address
    parts = [
        place.name,
        " ".join(_unique(s.service_name for s in place.services)),
        " ".join(_unique(s.service_group_name for s in place.services)),
        " ".join(_unique(c.name for c in place.categories)),
        place.description or "",
    ]
    if address is not None:
        parts.extend(
            [
                address.address,
                address.city,
                address.province.name if address.province else "",
                address.district.name if address.district else "",
                address.ward.name if address.ward else "",
            ]
        )

    return " ".join(" ".join(part.split()) for part in parts if part and part.strip())


def project(place: Place) -> Projection:
    """
    Project a place into index documents.

    Total: a place missing address, services, categories or rating still
    yields documents with empty or zero values and never a None field
    other than geo.
    """
    address = place.address
    province = address.province if address else None
    district = address.district if address else None
    ward = address.ward if address else None
    city = (address.city if address else "") or ""

    geo = None
    if address is not None and address.has_coordinates:
        geo = GeoPoint(lat=address.latitude, lng=address.longitude)

    fields = dict(
        document_id=place.document_id,
        place_id=place.id,
        name=(place.name or "").strip(),
        description=(place.description or "").strip(),
        service_names=_unique(s.service_name for s in place.services),
        service_group_names=_unique(s.service_group_name for s in place.services),
        category_names=_unique(c.name for c in place.categories),
        categories=_unique((c.slug or c.name) for c in place.categories),
        address=(address.address if address else "") or "",
        city=city,
        city_facet=_facet(city, city),
        province=_codename(province),
        province_facet=_facet(_codename(province), province.name if province else ""),
        district=_codename(district),
        district_facet=_facet(_codename(district), district.name if district else ""),
        ward=_codename(ward),
        ward_facet=_facet(_codename(ward), ward.name if ward else ""),
        geo=geo,
        rating=place.rating.score if place.rating else 0.0,
        review_count=place.rating.review_count if place.rating else 0,
        quantity_sold=place.quantity_sold or 0,
    )

    return Projection(
        document_id=place.document_id,
        keyword_doc=SearchDocument(**fields),
        vector_payload=VectorPayload(**fields),
        search_text=build_search_text(place),
    )
