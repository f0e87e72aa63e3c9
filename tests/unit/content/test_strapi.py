"""
Tests for the CMS content store client and entity parsing.
"""

import httpx
import pytest

from placesearch.content import StrapiContentStore, parse_place
from placesearch.content.strapi import encode_params, flatten_rich_text
from placesearch.models import PlaceStatus

ENTITY = {
    "id": 12,
    "documentId": "abc123",
    "name": "Relax Spa",
    "publishedAt": "2024-05-01T00:00:00.000Z",
    "description": [
        {"type": "paragraph", "children": [{"type": "text", "text": "Quiet "}, {"type": "text", "text": "place"}]},
        {"type": "paragraph", "children": [{"type": "text", "text": "Open late"}]},
    ],
    "category_places": [{"name": "Beauty", "slug": "beauty"}],
    "general_info": {
        "address": {
            "address": "12 Le Loi",
            "city": "Ho Chi Minh",
            "latitude": "10.7769",
            "longitude": 106.7009,
            "province": {"name": "Hồ Chí Minh", "codename": "ho_chi_minh"},
            "district": {"name": "Quận 1", "codename": "quan_1"},
            "ward": None,
        },
        "rating": {"score": 4.5, "review_count": 10},
    },
    "services": [{"service_name": "Massage", "service_group_name": "Body"}],
    "quantity_sold": 42,
}


def test_encode_params():
    assert encode_params({"a": {"fields": ["x", "y"]}, "b": True}, "populate") == [
        ("populate[a][fields][0]", "x"),
        ("populate[a][fields][1]", "y"),
        ("populate[b]", "true"),
    ]


def test_flatten_rich_text():
    assert flatten_rich_text(ENTITY["description"]) == "Quiet place\nOpen late"
    assert flatten_rich_text("  plain  ") == "plain"
    assert flatten_rich_text(None) == ""


def test_parse_place():
    place = parse_place(ENTITY)

    assert place.document_id == "abc123"
    assert place.id == 12
    assert place.status == PlaceStatus.PUBLISHED
    assert place.description == "Quiet place\nOpen late"
    assert place.address.latitude == pytest.approx(10.7769)
    assert place.address.province.codename == "ho_chi_minh"
    assert place.address.ward is None
    assert place.rating.score == 4.5
    assert place.categories[0].slug == "beauty"
    assert place.quantity_sold == 42
    assert place.attributes == ENTITY


def test_parse_draft_and_service_group_description():
    place = parse_place(
        {"documentId": "d1", "publishedAt": None, "service_group_description": "Nails and more"}
    )

    assert place.status == PlaceStatus.DRAFT
    assert place.description == "Nails and more"
    assert place.address is None
    assert place.rating is None


def make_store(handler):
    client = httpx.AsyncClient(base_url="http://cms", transport=httpx.MockTransport(handler))
    return StrapiContentStore("http://cms", client=client, page_size=1)


async def test_find_one():
    def handler(request):
        assert request.url.path == "/api/places/abc123"
        assert request.url.params["status"] == "published"
        return httpx.Response(200, json={"data": ENTITY})

    place = await make_store(handler).find_one("abc123")

    assert place.name == "Relax Spa"


async def test_find_one_missing():
    store = make_store(lambda request: httpx.Response(404, json={"data": None}))

    assert await store.find_one("nope") is None


async def test_find_many_empty_ids_makes_no_request():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"data": []})

    assert await make_store(handler).find_many([]) == []
    assert requests == []


async def test_find_many_by_ids_filters():
    def handler(request):
        params = request.url.params
        assert params.get_list("filters[documentId][$in][0]") == ["a"]
        assert params.get_list("filters[documentId][$in][1]") == ["b"]
        return httpx.Response(
            200,
            json={
                "data": [{**ENTITY, "documentId": "b"}, {**ENTITY, "documentId": "a"}],
                "meta": {"pagination": {"page": 1, "pageCount": 1}},
            },
        )

    places = await make_store(handler).find_many(["a", "b"])

    assert [p.document_id for p in places] == ["b", "a"]


async def test_find_many_walks_pages():
    def handler(request):
        page = int(request.url.params["pagination[page]"])
        return httpx.Response(
            200,
            json={
                "data": [{**ENTITY, "documentId": f"p{page}"}],
                "meta": {"pagination": {"page": page, "pageCount": 3}},
            },
        )

    places = await make_store(handler).find_many()

    assert [p.document_id for p in places] == ["p1", "p2", "p3"]


async def test_server_error_propagates():
    store = make_store(lambda request: httpx.Response(500))

    with pytest.raises(httpx.HTTPStatusError):
        await store.find_one("abc123")
