"""
Tests for the HTTP surface using an injected service container.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fakes import make_place
from placesearch.api.main import create_app
from placesearch.exceptions import EmbeddingQuotaExceededError
from placesearch.ml.search import SearchStrategy


@pytest.fixture
def client(services):
    # No context manager: the lifespan would try to reach real backends
    return TestClient(create_app(services))


def seed(services, places):
    for place in places:
        services.content_store.put(place)
        asyncio.run(services.orchestrator.index_place(place))


class TestSearch:
    def test_envelope(self, client, services):
        seed(services, [make_place("a", name="Relax Spa", city="hcm")])

        response = client.get("/api/v1/places/search", params={"q": "spa", "sortBy": "rating"})

        assert response.status_code == 200
        body = response.json()
        assert [item["documentId"] for item in body["data"]] == ["a"]
        assert "searchScore" in body["data"][0]
        assert body["meta"]["total"] == 1
        assert body["meta"]["sortBy"] == "rating"
        assert body["meta"]["limit"] == 20
        assert body["facets"]["cityFacet"] == {"hcm|hcm": 1}

    def test_half_coordinates_is_400(self, client):
        response = client.get("/api/v1/places/search", params={"q": "spa", "lat": "10.7"})

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "InvalidRequestError"

    def test_unparseable_numbers_are_ignored(self, client, services):
        seed(services, [make_place("a", name="Relax Spa")])

        response = client.get(
            "/api/v1/places/search",
            params={"q": "spa", "minRating": "abc", "limit": "lots", "offset": "-3", "radius": "far"},
        )

        assert response.status_code == 200
        assert response.json()["meta"]["limit"] == 20
        assert response.json()["meta"]["offset"] == 0

    def test_limit_is_capped(self, client):
        response = client.get("/api/v1/places/search", params={"limit": "500"})

        assert response.json()["meta"]["limit"] == 100

    def test_quota_exhaustion_is_503_with_retry_after(self, client, services):
        services.search.strategy = SearchStrategy.VECTOR_FIRST
        services.embedder.embed = AsyncMock(
            side_effect=EmbeddingQuotaExceededError("quota", provider="openai")
        )

        response = client.get("/api/v1/places/search", params={"q": "spa"})

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "60"
        assert response.json()["error"]["details"]["provider"] == "openai"

    def test_backend_failure_is_500(self, client, services):
        services.keyword_index.search = AsyncMock(side_effect=ConnectionError("engine down"))

        response = client.get("/api/v1/places/search", params={"q": "spa"})

        assert response.status_code == 500
        assert response.json()["error"]["type"] == "SearchError"


class TestNearbyAndRecommendations:
    def test_nearby(self, client, services):
        seed(services, [make_place("a", lat=10.7769, lng=106.7100)])

        response = client.get("/api/v1/places/nearby", params={"lat": 10.7769, "lng": 106.7009})

        assert response.status_code == 200
        assert response.json()["data"][0]["distance"] == pytest.approx(0.99, abs=0.05)

    def test_nearby_requires_coordinates(self, client):
        assert client.get("/api/v1/places/nearby", params={"lat": 10.0}).status_code == 422

    def test_recommendations_unknown_is_404(self, client):
        response = client.get("/api/v1/places/missing/recommendations")

        assert response.status_code == 404
        assert response.json()["error"]["details"]["id"] == "missing"


class TestWebhook:
    def test_publish_indexes_place(self, client, services):
        services.content_store.put(make_place("abc", name="Relax Spa"))

        response = client.post(
            "/api/v1/webhooks/cms",
            json={
                "event": "entry.publish",
                "model": "place",
                "entry": {"documentId": "abc", "publishedAt": "2025-01-01T00:00:00Z"},
            },
        )

        assert response.status_code == 202
        assert response.json()["accepted"] is True
        assert "abc" in services.keyword_index.documents
        assert "abc" in services.vector_index.points

    def test_delete_removes_place(self, client, services):
        seed(services, [make_place("abc")])

        response = client.post(
            "/api/v1/webhooks/cms",
            json={"event": "entry.delete", "model": "place", "entry": {"documentId": "abc"}},
        )

        assert response.status_code == 202
        assert services.keyword_index.documents == {}
        assert services.vector_index.points == {}

    def test_draft_save_of_published_place_keeps_it_indexed(self, client, services):
        seed(services, [make_place("abc", name="Relax Spa")])

        response = client.post(
            "/api/v1/webhooks/cms",
            json={
                "event": "entry.update",
                "model": "place",
                "entry": {"documentId": "abc", "publishedAt": None},
            },
        )

        assert response.status_code == 202
        assert "abc" in services.keyword_index.documents
        assert "abc" in services.vector_index.points

    def test_other_models_ignored(self, client, services):
        response = client.post(
            "/api/v1/webhooks/cms",
            json={"event": "entry.update", "model": "article", "entry": {"documentId": "x"}},
        )

        assert response.status_code == 202
        assert response.json()["accepted"] is False
        assert services.content_store.find_one_calls == []

    def test_missing_document_id_is_400(self, client):
        response = client.post(
            "/api/v1/webhooks/cms", json={"event": "entry.update", "model": "place", "entry": {}}
        )

        assert response.status_code == 400


class TestAdmin:
    def test_sync_place(self, client, services):
        services.content_store.put(make_place("abc"))

        response = client.post("/api/v1/admin/places/abc/sync")

        assert response.status_code == 200
        assert response.json()["operation"] == "upsert"
        assert response.json()["ok"] is True

    def test_sync_all(self, client, services):
        services.content_store.put(make_place("a"))
        services.content_store.put(make_place("b"))

        response = client.post("/api/v1/admin/places/sync-all")

        assert response.status_code == 200
        assert response.json()["synced"] == 2

    def test_sync_all_background(self, client, monkeypatch):
        task = MagicMock()
        task.delay.return_value = MagicMock(id="task-1")
        monkeypatch.setattr("placesearch.api.routers.admin.sync_all_places_task", task)

        response = client.post("/api/v1/admin/places/sync-all", params={"background": "true"})

        assert response.status_code == 202
        assert response.json() == {"status": "queued", "task_id": "task-1"}

    def test_index_documents(self, client, services):
        services.content_store.put(make_place("abc", name="Relax Spa"))
        client.post("/api/v1/admin/places/abc/sync")

        response = client.get("/api/v1/admin/index/documents")

        assert response.json()["total"] == 1
        assert response.json()["data"][0]["name"] == "Relax Spa"

    def test_api_key_enforced(self, client, services):
        services.settings.require_api_key = True
        services.settings.api_keys = ["secret"]

        assert client.post("/api/v1/admin/places/sync-all").status_code == 401
        assert (
            client.post("/api/v1/admin/places/sync-all", headers={"X-API-Key": "wrong"}).status_code
            == 403
        )
        assert (
            client.post("/api/v1/admin/places/sync-all", headers={"X-API-Key": "secret"}).status_code
            == 200
        )


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_status_reports_components(self, client):
        body = client.get("/status").json()

        assert body["status"] == "healthy"
        assert body["components"]["keyword_index"]["status"] == "healthy"

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"
