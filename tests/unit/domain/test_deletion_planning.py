"""Tests for building deletion plans from dependency reports."""

from datetime import datetime, timezone

import pytest

from routekeeper.domain.deletion import DeletionAction, build_deletion_plan
from routekeeper.domain.errors import InvalidRebindTargetError, MissingRebindTargetError
from routekeeper.domain.models import (
    Coordinates,
    DependencyReport,
    Location,
    ObjectKind,
    Relation,
    RelationDependency,
    Route,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _route(route_id: int) -> Route:
    return Route(
        id=route_id,
        name=f"R{route_id}",
        coordinates=Coordinates(id=10, x=1.0, y=2.0, owner_route_id=1),
        from_location=Location(id=20, x=0.0, y=0.0, owner_route_id=1),
        to_location=Location(id=21, x=3.0, y=4.0, owner_route_id=1),
        distance=5,
        rating=3,
        creation_date=NOW,
    )


def _report(coordinates_shared=False, from_shared=False, owner=True) -> DependencyReport:
    def dependency(relation, object_id, shared):
        candidates = [_route(2), _route(3)] if shared else []
        return RelationDependency(
            relation=relation,
            object_id=object_id,
            is_owner=owner,
            usage_count=len(candidates),
            candidates=candidates,
        )

    return DependencyReport(
        route=_route(1),
        coordinates=dependency(Relation.COORDINATES, 10, coordinates_shared),
        from_location=dependency(Relation.FROM, 20, from_shared),
        to_location=dependency(Relation.TO, 21, False),
    )


class TestBuildDeletionPlan:
    def test_unshared_route_detaches_everything(self):
        plan = build_deletion_plan(_report())

        assert plan.route_id == 1
        assert [d.action for d in plan.decisions] == [DeletionAction.DETACH] * 3
        assert plan.rebinds == []

    def test_missing_targets_reported_together(self):
        with pytest.raises(MissingRebindTargetError) as exc_info:
            build_deletion_plan(_report(coordinates_shared=True, from_shared=True))

        assert exc_info.value.relations == ["coordinates", "from"]
        assert exc_info.value.details()["route_id"] == 1

    def test_rebind_decision(self):
        plan = build_deletion_plan(
            _report(coordinates_shared=True), {Relation.COORDINATES: 3}
        )

        (rebind,) = plan.rebinds
        assert rebind.relation is Relation.COORDINATES
        assert rebind.kind is ObjectKind.COORDINATES
        assert rebind.object_id == 10
        assert rebind.target_route_id == 3

    def test_string_relation_keys_accepted(self):
        plan = build_deletion_plan(_report(from_shared=True), {"from": 2, "to": None})
        assert plan.rebinds[0].kind is ObjectKind.LOCATION

    def test_target_not_among_candidates(self):
        with pytest.raises(InvalidRebindTargetError) as exc_info:
            build_deletion_plan(_report(coordinates_shared=True), {Relation.COORDINATES: 99})
        assert exc_info.value.details() == {"relation": "coordinates", "target_route_id": 99}

    def test_route_cannot_rebind_to_itself(self):
        with pytest.raises(InvalidRebindTargetError):
            build_deletion_plan(_report(coordinates_shared=True), {Relation.COORDINATES: 1})

    def test_targets_for_unneeded_relations_ignored(self):
        plan = build_deletion_plan(_report(), {Relation.TO: 42})
        assert plan.rebinds == []

    def test_shared_but_not_owned_needs_no_target(self):
        plan = build_deletion_plan(_report(coordinates_shared=True, owner=False))
        assert all(d.action is DeletionAction.DETACH for d in plan.decisions)
