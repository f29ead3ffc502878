"""Tests for route create, read and update."""

from datetime import timezone

import pytest

from routekeeper.domain.errors import (
    DuplicateNameError,
    NotFoundError,
    ValidationError,
    ZeroDistanceRouteError,
)
from routekeeper.infrastructure.persistence.route_store.models import (
    CoordinatesRow,
    LocationRow,
    RouteRow,
)
from tests.factories import make_draft


def _count(store, model):
    with store.session_scope() as session:
        return session.query(model).count()


class TestRouteCreate:
    def test_create_and_get(self, store):
        created = store.route_create(make_draft(name="  Harbor Run "))

        fetched = store.route_get(created.id)

        assert fetched == created
        assert fetched.name == "Harbor Run"
        assert fetched.coordinates.x == 1.0 and fetched.coordinates.y == 2.0
        assert fetched.from_location.name == "Home"
        assert fetched.to_location.name == "Work"
        assert fetched.creation_date.tzinfo is not None
        assert fetched.creation_date.utcoffset() == timezone.utc.utcoffset(None)

    def test_shared_values_deduplicated(self, store):
        a = store.route_create(make_draft(name="A"))
        b = store.route_create(make_draft(name="B"))

        assert a.coordinates.id == b.coordinates.id
        assert a.from_location.id == b.from_location.id
        assert _count(store, CoordinatesRow) == 1
        assert _count(store, LocationRow) == 2

    def test_location_reused_across_relations(self, store):
        a = store.route_create(make_draft(name="Out", start=(0, 0, "Home"), end=(3, 4, "Work")))
        b = store.route_create(make_draft(name="Back", start=(3, 4, "Work"), end=(0, 0, "Home")))

        assert b.from_location.id == a.to_location.id
        assert b.to_location.id == a.from_location.id
        assert _count(store, LocationRow) == 2

    def test_duplicate_name(self, store):
        original = store.route_create(make_draft(name="Ridge"))

        with pytest.raises(DuplicateNameError) as exc_info:
            store.route_create(make_draft(name=" Ridge", coords=(9.0, 9.0)))

        assert exc_info.value.conflicting_route.id == original.id
        assert exc_info.value.details()["conflicting_route"]["name"] == "Ridge"
        assert _count(store, RouteRow) == 1
        # nothing of the rejected route was stored
        assert _count(store, CoordinatesRow) == 1

    def test_names_are_case_sensitive(self, store):
        store.route_create(make_draft(name="ridge"))
        store.route_create(make_draft(name="Ridge"))
        assert _count(store, RouteRow) == 2

    def test_invalid_draft_writes_nothing(self, store):
        with pytest.raises(ValidationError):
            store.route_create(make_draft(rating=0))
        with pytest.raises(ZeroDistanceRouteError):
            store.route_create(make_draft(start=(1, 1, "A"), end=(1, 1, "B")))
        assert _count(store, RouteRow) == 0
        assert _count(store, LocationRow) == 0

    def test_get_missing(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.route_get(404)
        assert exc_info.value.details() == {"entity": "Route", "entity_id": 404}

    def test_id_beyond_integer_column_is_missing(self, store):
        with pytest.raises(NotFoundError):
            store.route_get(2**64)

    def test_get_by_name(self, store):
        route = store.route_create(make_draft(name="Named"))
        assert store.route_get_by_name("Named").id == route.id
        assert store.route_get_by_name("named") is None


class TestRouteCreateBatch:
    def test_batch_commits_all(self, store):
        routes = store.route_create_batch(
            [make_draft(name="B1"), make_draft(name="B2", coords=(5.0, 5.0))]
        )
        assert [r.name for r in routes] == ["B1", "B2"]
        assert routes[1].coordinates.owner_route_id == routes[1].id
        assert routes[1].from_location.owner_route_id == routes[0].id

    def test_batch_rolls_back_on_conflict(self, store):
        store.route_create(make_draft(name="Taken"))

        with pytest.raises(DuplicateNameError):
            store.route_create_batch(
                [make_draft(name="Fresh", coords=(6.0, 6.0)), make_draft(name="Taken")]
            )

        assert store.route_get_by_name("Fresh") is None
        assert _count(store, CoordinatesRow) == 1

    def test_batch_rejects_internal_duplicates(self, store):
        with pytest.raises(DuplicateNameError):
            store.route_create_batch([make_draft(name="Twin"), make_draft(name="Twin")])
        assert _count(store, RouteRow) == 0


class TestRouteUpdate:
    def test_scalar_fields(self, store):
        route = store.route_create(make_draft(name="Before"))

        updated = store.route_update(route.id, make_draft(name="After", distance=10, rating=5))

        assert updated.name == "After"
        assert updated.distance == 10
        assert updated.rating == 5
        assert updated.creation_date == route.creation_date
        assert updated.coordinates.id == route.coordinates.id

    def test_changed_value_replaces_and_purges_old(self, store):
        route = store.route_create(make_draft(name="Mover"))
        old_id = route.coordinates.id

        updated = store.route_update(route.id, make_draft(name="Mover", coords=(8.0, 8.0)))

        assert updated.coordinates.id != old_id
        assert updated.coordinates.owner_route_id == route.id
        with store.session_scope() as session:
            assert session.get(CoordinatesRow, old_id) is None

    def test_changed_shared_value_survives_for_others(self, store):
        owner = store.route_create(make_draft(name="Owner"))
        other = store.route_create(make_draft(name="Other"))

        store.route_update(owner.id, make_draft(name="Owner", coords=(8.0, 8.0)))

        kept = store.route_get(other.id).coordinates
        assert kept.id == owner.coordinates.id
        assert kept.owner_route_id == other.id

    def test_swap_endpoints(self, store):
        route = store.route_create(make_draft(name="Swap", start=(0, 0, "Home"), end=(3, 4, "Work")))

        updated = store.route_update(
            route.id, make_draft(name="Swap", start=(3, 4, "Work"), end=(0, 0, "Home"))
        )

        assert updated.from_location.id == route.to_location.id
        assert updated.to_location.id == route.from_location.id
        assert _count(store, LocationRow) == 2

    def test_rename_to_taken_name(self, store):
        store.route_create(make_draft(name="One"))
        two = store.route_create(make_draft(name="Two"))

        with pytest.raises(DuplicateNameError):
            store.route_update(two.id, make_draft(name="One"))
        assert store.route_get(two.id).name == "Two"

    def test_keeping_own_name(self, store):
        route = store.route_create(make_draft(name="Same"))
        assert store.route_update(route.id, make_draft(name="Same", rating=9)).rating == 9

    def test_update_missing(self, store):
        with pytest.raises(NotFoundError):
            store.route_update(77, make_draft())
