"""
Deletion planning for routes that own shared objects.

Deleting a route is a two-phase operation. First a ``DeletionPlan`` is built
from the route's ``DependencyReport`` and the caller's rebind instructions;
every check happens here. Then the store executes the plan in a single
transaction. A plan never exists in an invalid state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from .errors import InvalidRebindTargetError, MissingRebindTargetError
from .models import DependencyReport, ObjectKind, Relation


class DeletionAction(str, Enum):
    DETACH = "detach"
    REBIND = "rebind"


@dataclass(frozen=True)
class RelationDecision:
    """
    What happens to one shared object when its route is deleted.

    Attributes:
        relation: Relation of the deleted route to the object
        kind: Object kind
        object_id: Shared object identifier
        action: ``detach`` or ``rebind``
        target_route_id: New owner, set only for ``rebind``
    """

    relation: Relation
    kind: ObjectKind
    object_id: int
    action: DeletionAction
    target_route_id: Optional[int] = None


@dataclass(frozen=True)
class DeletionPlan:
    route_id: int
    decisions: List[RelationDecision]

    @property
    def rebinds(self) -> List[RelationDecision]:
        return [d for d in self.decisions if d.action is DeletionAction.REBIND]


RebindTargets = Mapping[Union[Relation, str], Optional[int]]


def normalize_rebind_targets(targets: Optional[RebindTargets]) -> Dict[Relation, int]:
    """Key rebind instructions by Relation and drop empty entries."""
    normalized: Dict[Relation, int] = {}
    for key, value in (targets or {}).items():
        if value is None:
            continue
        normalized[Relation(key)] = value
    return normalized


def build_deletion_plan(
    report: DependencyReport, rebind_targets: Optional[RebindTargets] = None
) -> DeletionPlan:
    """
    Classify each relation of the route and validate the rebind targets.

    Targets given for relations that need no rebind are ignored.

    Args:
        report: Dependency report of the route to delete
        rebind_targets: Mapping of relation to the id of the route that
            should become the new owner

    Returns:
        DeletionPlan: Validated plan ready for execution

    Raises:
        MissingRebindTargetError: If a relation needs a rebind and no target
            was given
        InvalidRebindTargetError: If a target does not reference the object
    """
    targets = normalize_rebind_targets(rebind_targets)
    route_id = report.route.id

    missing = [
        dep.relation.value
        for dep in report.relations()
        if dep.needs_rebind and dep.relation not in targets
    ]
    if missing:
        raise MissingRebindTargetError(route_id, missing)

    decisions: List[RelationDecision] = []
    for dep in report.relations():
        if not dep.needs_rebind:
            decisions.append(
                RelationDecision(
                    relation=dep.relation,
                    kind=dep.relation.kind,
                    object_id=dep.object_id,
                    action=DeletionAction.DETACH,
                )
            )
            continue

        target = targets[dep.relation]
        candidate_ids = {route.id for route in dep.candidates}
        if target == route_id or target not in candidate_ids:
            raise InvalidRebindTargetError(
                dep.relation.value,
                target,
                f"Route {target} does not reference {dep.relation.kind.value} "
                f"{dep.object_id} of route {route_id}",
            )
        decisions.append(
            RelationDecision(
                relation=dep.relation,
                kind=dep.relation.kind,
                object_id=dep.object_id,
                action=DeletionAction.REBIND,
                target_route_id=target,
            )
        )

    return DeletionPlan(route_id=route_id, decisions=decisions)
