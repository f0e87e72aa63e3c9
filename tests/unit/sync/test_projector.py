"""
Tests for place projection into index documents.
"""

from fakes import make_place
from placesearch.models import Place, PlaceService
from placesearch.sync import build_search_text, project


def test_services_deduplicated_and_category_slug_used():
    """Duplicate service names collapse; slug is the category filter value."""
    place = make_place(
        "p1",
        name="Relax Spa",
        services=["Massage", "Massage"],
        categories=[("Beauty", "beauty")],
    )

    doc = project(place).keyword_doc.to_document()

    assert doc["serviceNames"] == ["Massage"]
    assert doc["categories"] == ["beauty"]
    assert doc["categoryNames"] == ["Beauty"]
    assert doc["name"] == "Relax Spa"


def test_dedup_trims_and_is_case_sensitive():
    place = Place(
        document_id="p1",
        services=[
            PlaceService(service_name=" Massage "),
            PlaceService(service_name="massage"),
            PlaceService(service_name="Massage"),
            PlaceService(service_name="  "),
            PlaceService(service_group_name="Body"),
            PlaceService(service_group_name="Body"),
        ],
    )

    doc = project(place).keyword_doc

    assert doc.service_names == ["Massage", "massage"]
    assert doc.service_group_names == ["Body"]


def test_category_without_slug_falls_back_to_name():
    place = make_place("p1", categories=[("Nail Care", None)])

    assert project(place).keyword_doc.categories == ["Nail Care"]


def test_partial_place_projects_to_defaults():
    """A place with nothing but an id still projects, with no None fields."""
    projection = project(Place(document_id="bare"))

    doc = projection.keyword_doc.to_document()
    payload = projection.vector_payload.to_payload()

    assert doc["documentId"] == "bare"
    assert doc["province"] == ""
    assert doc["district"] == ""
    assert doc["ward"] == ""
    assert doc["city"] == ""
    assert doc["rating"] == 0.0
    assert doc["quantitySold"] == 0
    assert doc["serviceNames"] == []
    assert "_geo" not in doc
    assert "location" not in payload
    assert None not in doc.values()
    assert None not in payload.values()
    assert projection.search_text == ""


def test_location_codenames_and_facets():
    place = make_place(
        "p1",
        city="Ho Chi Minh",
        province=("Hồ Chí Minh", "ho_chi_minh"),
        district=("Quận 1", "quan_1"),
    )

    doc = project(place).keyword_doc

    assert doc.province == "ho_chi_minh"
    assert doc.province_facet == "ho_chi_minh|Hồ Chí Minh"
    assert doc.district == "quan_1"
    assert doc.district_facet == "quan_1|Quận 1"
    assert doc.ward == ""
    assert doc.ward_facet == ""
    assert doc.city_facet == "Ho Chi Minh|Ho Chi Minh"


def test_geo_fields_per_index():
    place = make_place("p1", lat=10.7769, lng=106.7009)
    projection = project(place)

    assert projection.keyword_doc.to_document()["_geo"] == {"lat": 10.7769, "lng": 106.7009}
    payload = projection.vector_payload.to_payload()
    assert payload["location"] == {"lat": 10.7769, "lon": 106.7009}
    assert "_geo" not in payload


def test_search_text_order():
    place = make_place(
        "p1",
        name="Relax Spa",
        services=["Massage", "Massage"],
        groups=["Body Care"],
        categories=[("Beauty", "beauty")],
        description="Quiet   place",
        address="12 Le Loi",
        city="HCM",
        province=("Hồ Chí Minh", "hcm"),
    )

    assert build_search_text(place) == (
        "Relax Spa Massage Body Care Beauty Quiet place 12 Le Loi HCM Hồ Chí Minh"
    )


def test_projection_is_deterministic():
    place = make_place("p1", name="Relax Spa", services=["Massage"], rating=4.5)

    assert project(place) == project(place)
