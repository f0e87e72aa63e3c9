"""
Tests for filter rendering to both engines.
"""

import pytest
from qdrant_client import models

from placesearch.exceptions import InvalidSearchRequest
from placesearch.ml.retrieval import PlaceFilters, SortBy, keyword_sort


class TestSortBy:
    def test_parse_known(self):
        assert SortBy.parse("distance") == SortBy.DISTANCE

    @pytest.mark.parametrize("value", [None, "", "newest", "RATING"])
    def test_parse_unknown_falls_back_to_relevance(self, value):
        assert SortBy.parse(value) == SortBy.RELEVANCE


class TestValidation:
    def test_half_coordinates_rejected(self):
        with pytest.raises(InvalidSearchRequest):
            PlaceFilters(lat=10.0).validate()
        with pytest.raises(InvalidSearchRequest):
            PlaceFilters(lng=106.0).validate()

    def test_non_positive_radius_rejected(self):
        with pytest.raises(InvalidSearchRequest):
            PlaceFilters(lat=10.0, lng=106.0, radius_km=0).validate()

    def test_radius_without_coordinates_is_ignored(self):
        filters = PlaceFilters(radius_km=5)
        filters.validate()
        assert filters.radius_meters is None
        assert filters.is_empty()


class TestKeywordFilter:
    def test_empty(self):
        assert PlaceFilters().to_keyword_filter() is None

    def test_all_clauses(self):
        filters = PlaceFilters(
            lat=10.7769,
            lng=106.7009,
            radius_km=5,
            province="ho_chi_minh",
            district="quan_1",
            categories=["spa", "nail"],
            min_rating=4.0,
        )

        assert filters.to_keyword_filter() == (
            "_geoRadius(10.7769, 106.7009, 5000) AND "
            'province = "ho_chi_minh" AND district = "quan_1" AND '
            'categories IN ["spa", "nail"] AND rating >= 4.0'
        )

    def test_quotes_are_escaped(self):
        assert PlaceFilters(city='Sai "Gon"').to_keyword_filter() == 'city = "Sai \\"Gon\\""'


class TestVectorFilter:
    def test_empty(self):
        assert PlaceFilters().to_vector_filter() is None

    def test_geo_and_categories(self):
        result = PlaceFilters(lat=10.0, lng=106.0, radius_km=2, categories=["spa"]).to_vector_filter()

        geo, categories = result.must
        assert geo.key == "location"
        assert geo.geo_radius.center == models.GeoPoint(lat=10.0, lon=106.0)
        assert geo.geo_radius.radius == 2000
        assert categories.match == models.MatchAny(any=["spa"])

    def test_location_and_rating(self):
        result = PlaceFilters(ward="ben_nghe", min_rating=3.5).to_vector_filter()

        ward, rating = result.must
        assert ward.key == "ward"
        assert ward.match == models.MatchValue(value="ben_nghe")
        assert rating.range == models.Range(gte=3.5)


class TestKeywordSort:
    def test_rating(self):
        assert keyword_sort(SortBy.RATING) == ["rating:desc"]

    def test_popular(self):
        assert keyword_sort(SortBy.POPULAR) == ["quantitySold:desc"]

    def test_distance_needs_coordinates(self):
        assert keyword_sort(SortBy.DISTANCE) is None
        assert keyword_sort(SortBy.DISTANCE, 10.0, 106.0) == ["_geoPoint(10.0, 106.0):asc"]

    def test_relevance_uses_engine_ranking(self):
        assert keyword_sort(SortBy.RELEVANCE) is None
