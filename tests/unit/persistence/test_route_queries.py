"""Tests for read-only route queries and in-use value listings."""

import pytest

from routekeeper.domain.errors import InvalidArgumentError, NotFoundError, ValidationError
from routekeeper.domain.models import LocationDraft, Relation
from routekeeper.infrastructure.persistence.route_store.mixins.queries_mixin import (
    parse_location_spec,
)
from tests.factories import make_draft


@pytest.fixture
def network(store):
    """Routes between a few named places."""
    return {
        "ab1": store.route_create(
            make_draft(name="Gamma", start=(0, 0, "A"), end=(5, 0, "B"), distance=5, rating=2)
        ),
        "ab2": store.route_create(
            make_draft(name="Alpha", start=(0, 0, "A"), end=(5, 0, "B"), distance=9, rating=5)
        ),
        "ba": store.route_create(
            make_draft(name="Beta", start=(5, 0, "B"), end=(0, 0, "A"), distance=5, rating=4)
        ),
        "ac": store.route_create(
            make_draft(name="Delta", start=(0, 0, "A"), end=(9, 9, None), distance=13, rating=1)
        ),
    }


class TestParseLocationSpec:
    @pytest.mark.parametrize(
        "raw, expected",
        [("(1, 2)", (1.0, 2.0)), ("( -1.5 ,3e2 )", (-1.5, 300.0)), ("(.5,0)", (0.5, 0.0))],
    )
    def test_points(self, raw, expected):
        assert parse_location_spec(raw) == expected

    @pytest.mark.parametrize("raw", ["Harbor", "(1, 2", "(a, b)", "1, 2"])
    def test_names(self, raw):
        assert parse_location_spec(raw) == raw


class TestAggregates:
    def test_max_name(self, store, network):
        assert store.route_with_max_name().name == "Gamma"

    def test_max_name_empty(self, store):
        with pytest.raises(NotFoundError):
            store.route_with_max_name()

    def test_count_rating_less_than(self, store, network):
        assert store.route_count_rating_less_than(4) == 2
        assert store.route_count_rating_less_than(1) == 0

    def test_threshold_out_of_range(self, store, network):
        with pytest.raises(ValidationError):
            store.route_count_rating_less_than(10**20)
        with pytest.raises(ValidationError):
            store.route_list_rating_greater_than(-(10**20))

    def test_rating_greater_than_best_first(self, store, network):
        routes = store.route_list_rating_greater_than(1)
        assert [r.name for r in routes] == ["Alpha", "Beta", "Gamma"]


class TestBetween:
    def test_by_name_default_order(self, store, network):
        routes = store.route_list_between("A", "B")
        assert [r.name for r in routes] == ["Alpha", "Gamma"]

    def test_direction_is_literal(self, store, network):
        assert [r.name for r in store.route_list_between("B", "A")] == ["Beta"]

    def test_by_point(self, store, network):
        routes = store.route_list_between("(0, 0)", "(9, 9)")
        assert [r.name for r in routes] == ["Delta"]

    @pytest.mark.parametrize(
        "sort_by, expected",
        [("distance", ["Gamma", "Alpha"]), ("rating", ["Alpha", "Gamma"]), ("name", ["Alpha", "Gamma"])],
    )
    def test_orderings(self, store, network, sort_by, expected):
        assert [r.name for r in store.route_list_between("A", "B", sort_by)] == expected

    def test_creation_date_newest_first(self, store, network):
        routes = store.route_list_between("A", "B", "creation_date")
        assert [r.name for r in routes] == ["Alpha", "Gamma"]

    def test_unknown_ordering(self, store):
        with pytest.raises(InvalidArgumentError):
            store.route_list_between("A", "B", "length")

    def test_no_match(self, store, network):
        assert store.route_list_between("Nowhere", "B") == []


class TestValuesInUse:
    def test_coordinates(self, store, network):
        coordinates = store.available_coordinates()
        assert len(coordinates) == 1
        assert coordinates[0].owner_route_id == network["ab1"].id

    def test_locations_by_relation(self, store, network):
        all_names = sorted(str(loc.name) for loc in store.available_locations())
        from_names = sorted(str(loc.name) for loc in store.available_from_locations())
        to_names = sorted(str(loc.name) for loc in store.available_to_locations())

        assert all_names == ["A", "B", "None"]
        assert from_names == ["A", "B"]
        assert to_names == ["A", "B", "None"]

    def test_location_names(self, store, network):
        assert store.available_location_names() == ["A", "B"]

    def test_purged_values_disappear(self, store, network):
        store.route_delete(network["ac"].id)
        assert [loc.name for loc in store.available_to_locations()] == ["A", "B"]

    def test_replaced_values_not_listed(self, store):
        route = store.route_create(make_draft(name="Solo", end=(3.0, 4.0, "Old")))

        store.resolve(LocationDraft(x=6.0, y=8.0, name="New"), route.id, Relation.TO)

        assert store.available_location_names() == ["Home", "New"]
        assert len(store.available_locations()) == 2
