"""Route deletion mixin.

Deleting a route that owns shared objects still used by other routes first
hands ownership to a caller-chosen route. The dependency report and the
deletion plan are built and validated before anything is written; the plan
is then executed in the same transaction.
"""

import logging
from typing import Optional

from routekeeper.domain.deletion import DeletionPlan, RebindTargets, build_deletion_plan
from routekeeper.domain.errors import InvalidRebindTargetError, MissingRebindTargetError
from routekeeper.domain.models import DependencyReport, Relation, RelationDependency

from ..models import RouteRow
from ..utils import retry_read_once

logger = logging.getLogger(__name__)


class DeletionMixin:
    """Mixin providing dependency checks and the route delete path."""

    @retry_read_once
    def route_check_dependencies(self, route_id: int) -> DependencyReport:
        """Report, for each relation, who else uses the route's shared objects.

        Raises:
            NotFoundError: If the route does not exist
        """
        with self.session_scope(readonly=True) as session:
            row = self._get_route_row(session, route_id)
            return self._dependency_report_in_session(session, row)

    def route_delete(
        self, route_id: int, rebind_targets: Optional[RebindTargets] = None
    ) -> DeletionPlan:
        """Delete a route, re-homing the shared objects it owns.

        Args:
            route_id: Route to delete
            rebind_targets: Mapping of relation (``coordinates``, ``from``,
                ``to``) to the id of the route that becomes the new owner

        Returns:
            The executed DeletionPlan

        Raises:
            NotFoundError: If the route does not exist
            MissingRebindTargetError: If an owned, shared object has no target
            InvalidRebindTargetError: If a target does not reference the object
        """
        with self.session_scope() as session:
            row = self._get_route_row(session, route_id)
            report = self._dependency_report_in_session(session, row)
            try:
                plan = build_deletion_plan(report, rebind_targets)
            except (MissingRebindTargetError, InvalidRebindTargetError) as e:
                logger.warning(f"Rejected deletion of route {route_id}: {e}")
                raise
            self._execute_deletion_plan_in_session(session, row, plan)
        logger.info(f"Deleted route {route_id}")
        return plan

    # === Session-level helpers ===

    def _dependency_report_in_session(self, session, row: RouteRow) -> DependencyReport:
        route = row.to_domain()
        dependencies = {}
        for relation in Relation:
            object_id = route.object_id(relation)
            obj = self._get_shared_object(session, relation.kind, object_id)
            other_ids = self._referencing_route_ids(
                session, relation.kind, object_id, exclude_route_id=route.id
            )
            candidates = []
            if other_ids:
                candidates = [
                    candidate.to_domain()
                    for candidate in session.query(RouteRow)
                    .filter(RouteRow.id.in_(other_ids))
                    .order_by(RouteRow.id)
                    .all()
                ]
            dependencies[relation] = RelationDependency(
                relation=relation,
                object_id=object_id,
                is_owner=obj.owner_route_id == route.id,
                usage_count=len(other_ids),
                candidates=candidates,
            )
        return DependencyReport(
            route=route,
            coordinates=dependencies[Relation.COORDINATES],
            from_location=dependencies[Relation.FROM],
            to_location=dependencies[Relation.TO],
        )

    def _execute_deletion_plan_in_session(self, session, row: RouteRow, plan: DeletionPlan) -> None:
        for decision in plan.rebinds:
            self._reassign_owner_in_session(
                session, decision.kind, decision.object_id, decision.target_route_id
            )
        for decision in plan.decisions:
            self._detach_reference_in_session(
                session, decision.relation, decision.object_id, row.id
            )
        session.delete(row)
        session.flush()
        self._purge_orphans_in_session(
            session, [(decision.kind, decision.object_id) for decision in plan.decisions]
        )
