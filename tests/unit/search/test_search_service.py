"""
Tests for the hybrid search pipeline over in-memory indexes.
"""

from unittest.mock import AsyncMock

import pytest

from fakes import make_place
from placesearch.exceptions import EmbeddingQuotaExceededError, InvalidSearchRequest, PlaceNotIndexedError
from placesearch.ml.retrieval import SortBy
from placesearch.ml.search import SearchRequest, SearchStrategy

CENTER = (10.7769, 106.7009)


async def seed(services, places):
    for place in places:
        services.content_store.put(place)
        result = await services.orchestrator.index_place(place)
        assert result.ok


def test_candidate_window(services):
    search = services.search

    assert search.candidate_window(0, 20) == 40
    assert search.candidate_window(0, 2) == 10
    search.max_candidates = 30
    assert search.candidate_window(40, 20) == 30


async def test_pages_are_disjoint_slices_of_one_ordering(services):
    places = [make_place(f"p{i:02d}", name=f"Spa {i}", rating=float(i % 7)) for i in range(25)]
    await seed(services, places)

    seen = []
    for offset in (0, 10, 20):
        outcome = await services.search.search(SearchRequest(query="spa", limit=10, offset=offset))
        assert outcome.total == 25
        seen.extend(outcome.document_ids())

    assert len(seen) == 25
    assert len(set(seen)) == 25


async def test_rating_sort_consistent_across_pages(services):
    places = [make_place(f"p{i:02d}", name=f"Spa {i}", rating=i / 10) for i in range(15)]
    await seed(services, places)

    first = await services.search.search(SearchRequest(query="spa", sort_by=SortBy.RATING, limit=5))
    second = await services.search.search(
        SearchRequest(query="spa", sort_by=SortBy.RATING, limit=5, offset=5)
    )

    ratings = [r.place.rating.score for r in first.results + second.results]
    assert ratings == sorted(ratings, reverse=True)
    assert ratings[0] == pytest.approx(1.4)


async def test_distance_sort(services):
    near = make_place("a", name="Spa A", lat=CENTER[0], lng=106.7192)
    far = make_place("b", name="Spa B", lat=CENTER[0], lng=106.7740)
    await seed(services, [far, near])

    outcome = await services.search.search(
        SearchRequest(query="spa", lat=CENTER[0], lng=CENTER[1], sort_by=SortBy.DISTANCE)
    )

    assert outcome.document_ids() == ["a", "b"]
    assert outcome.results[0].distance_km == pytest.approx(2.0, abs=0.1)
    assert outcome.results[1].distance_km == pytest.approx(8.0, abs=0.1)


async def test_default_radius_excludes_distant_places(services):
    near = make_place("a", name="Spa A", lat=CENTER[0], lng=106.7192)
    distant = make_place("z", name="Spa Z", lat=21.0285, lng=105.8542)
    await seed(services, [near, distant])

    outcome = await services.search.search(SearchRequest(query="spa", lat=CENTER[0], lng=CENTER[1]))

    assert outcome.document_ids() == ["a"]


async def test_empty_result_skips_content_store(services):
    await seed(services, [make_place("a", name="Relax Spa")])
    services.content_store.find_many_calls.clear()

    outcome = await services.search.search(SearchRequest(query="karaoke"))

    assert outcome.results == []
    assert outcome.total == 0
    assert services.content_store.find_many_calls == []


async def test_offset_past_window_skips_content_store(services):
    await seed(services, [make_place("a", name="Relax Spa")])
    services.content_store.find_many_calls.clear()

    outcome = await services.search.search(SearchRequest(query="spa", offset=50, limit=5))

    assert outcome.results == []
    assert outcome.total == 1
    assert services.content_store.find_many_calls == []


async def test_facets_ignore_filters(services):
    await seed(
        services,
        [
            make_place("a", name="Spa A", city="hcm"),
            make_place("b", name="Spa B", city="hcm"),
            make_place("c", name="Spa C", city="hanoi"),
        ],
    )

    outcome = await services.search.search(SearchRequest(query="spa", city="hanoi"))

    assert outcome.document_ids() == ["c"]
    assert outcome.facets["cityFacet"] == {"hcm|hcm": 2, "hanoi|hanoi": 1}


async def test_results_keep_ranking_order_and_skip_vanished(services):
    await seed(
        services,
        [
            make_place("a", name="Spa A", rating=5.0),
            make_place("b", name="Spa B", rating=4.0),
            make_place("c", name="Spa C", rating=3.0),
        ],
    )
    del services.content_store.places["b"]

    outcome = await services.search.search(SearchRequest(query="spa", sort_by=SortBy.RATING))

    assert outcome.document_ids() == ["a", "c"]


async def test_half_coordinates_rejected(services):
    with pytest.raises(InvalidSearchRequest):
        await services.search.search(SearchRequest(query="spa", lat=10.0))


async def test_invalid_paging_rejected(services):
    with pytest.raises(InvalidSearchRequest):
        await services.search.search(SearchRequest(query="spa", limit=0))


class TestVectorFirst:
    @pytest.fixture(autouse=True)
    def vector_first(self, services):
        services.search.strategy = SearchStrategy.VECTOR_FIRST

    async def test_name_match_ranks_first(self, services):
        await seed(services, [make_place("n", name="Nail House"), make_place("r", name="Relax Spa")])

        outcome = await services.search.search(SearchRequest(query="Relax Spa"))

        assert outcome.document_ids()[0] == "r"
        assert outcome.results[0].score == pytest.approx(0.9)
        assert outcome.facets is None

    async def test_quota_error_propagates(self, services):
        await seed(services, [make_place("r", name="Relax Spa")])
        services.search.embedder.embed = AsyncMock(
            side_effect=EmbeddingQuotaExceededError("quota", provider="openai", retry_after=30)
        )

        with pytest.raises(EmbeddingQuotaExceededError):
            await services.search.search(SearchRequest(query="spa"))

    async def test_empty_query_uses_filters_only(self, services):
        await seed(services, [make_place("a", city="hcm"), make_place("b", city="hanoi")])
        services.embedder.embed_calls.clear()

        outcome = await services.search.search(SearchRequest(city="hcm"))

        assert outcome.document_ids() == ["a"]
        assert services.embedder.embed_calls == []


async def test_nearby_orders_by_distance(services):
    await seed(
        services,
        [
            make_place("far", lat=CENTER[0], lng=106.7370),
            make_place("near", lat=CENTER[0], lng=106.7100),
            make_place("out", lat=CENTER[0], lng=106.9000),
            make_place("nogeo"),
        ],
    )

    outcome = await services.search.nearby(CENTER[0], CENTER[1], radius_km=5)

    assert outcome.document_ids() == ["near", "far"]
    assert outcome.total == 2


async def test_recommendations_exclude_source(services):
    await seed(services, [make_place(f"p{i}", name=f"Spa {i}") for i in range(4)])

    outcome = await services.search.recommendations("p0", limit=2)

    assert len(outcome.results) == 2
    assert "p0" not in outcome.document_ids()


async def test_recommendations_unknown_place(services):
    with pytest.raises(PlaceNotIndexedError):
        await services.search.recommendations("missing")


def test_result_to_dict(services):
    from placesearch.ml.search import PlaceResult

    data = PlaceResult(place=make_place("a", name="Relax Spa"), score=0.5, distance_km=1.23456).to_dict()

    assert data["documentId"] == "a"
    assert data["name"] == "Relax Spa"
    assert data["searchScore"] == 0.5
    assert data["distance"] == 1.235
