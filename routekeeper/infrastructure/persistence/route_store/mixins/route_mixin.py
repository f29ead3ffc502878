"""Route CRUD operations mixin.

Create and update validate the draft, resolve the shared values through the
value store and attach references through the ownership tracker, all inside
one transaction. Name uniqueness is checked up front for a precise error and
enforced by the unique constraint for concurrent writers.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from routekeeper.domain.errors import DuplicateNameError, NotFoundError, RepositoryError
from routekeeper.domain.models import Relation, Route, RouteDraft
from routekeeper.domain.validation import validate_route_draft

from ..models import RouteRow, utc_now
from ..utils import get_row, retry_read_once

logger = logging.getLogger(__name__)

# RouteDraft field behind each relation
RELATION_FIELDS = {
    Relation.COORDINATES: "coordinates",
    Relation.FROM: "from_location",
    Relation.TO: "to_location",
}


class RouteCRUDMixin:
    """Mixin providing create, read and update operations for routes.

    Deletion lives in DeletionMixin: it is the only way to remove a route.
    """

    def route_create(self, draft: RouteDraft) -> Route:
        """Create a route from a draft.

        Args:
            draft: Route content

        Returns:
            The stored route with its resolved shared objects

        Raises:
            ValidationError: If a field is invalid or from equals to
            ZeroDistanceRouteError: If from and to are the same point
            DuplicateNameError: If another route has the same name
        """
        draft = validate_route_draft(draft)
        with self._translating_name_conflicts([draft.name]):
            with self.session_scope() as session:
                self._ensure_name_available(session, draft.name)
                row = self._create_route_in_session(session, draft)
                route = row.to_domain()
        logger.info(f"Created route {route.id} '{route.name}'")
        return route

    def route_create_batch(self, drafts: Sequence[RouteDraft]) -> List[Route]:
        """Create several routes in a single transaction.

        Either every route is committed or none is. Shared values are
        deduplicated across the batch exactly as with ``route_create``; the
        first route that references a new value becomes its owner.
        """
        validated = [validate_route_draft(draft) for draft in drafts]
        with self._translating_name_conflicts([d.name for d in validated]):
            with self.session_scope() as session:
                routes = []
                for draft in validated:
                    self._ensure_name_available(session, draft.name)
                    routes.append(self._create_route_in_session(session, draft).to_domain())
        logger.info(f"Created {len(routes)} routes in one batch")
        return routes

    @retry_read_once
    def route_get(self, route_id: int) -> Route:
        """Retrieve a route by id.

        Raises:
            NotFoundError: If no route has this id
        """
        with self.session_scope(readonly=True) as session:
            return self._get_route_row(session, route_id).to_domain()

    @retry_read_once
    def route_get_by_name(self, name: str) -> Optional[Route]:
        """Route with exactly this name, or None."""
        with self.session_scope(readonly=True) as session:
            row = self._find_route_by_name(session, name)
            return row.to_domain() if row else None

    def route_update(self, route_id: int, draft: RouteDraft) -> Route:
        """Replace the content of a route.

        Name, distance and rating change in place. A changed coordinates,
        from or to value detaches the old reference and attaches the new
        one; old objects left without references are purged.

        Raises:
            NotFoundError: If the route does not exist
            ValidationError, ZeroDistanceRouteError, DuplicateNameError:
                As for ``route_create``
        """
        draft = validate_route_draft(draft)
        with self._translating_name_conflicts([draft.name], exclude_route_id=route_id):
            with self.session_scope() as session:
                row = self._get_route_row(session, route_id)
                self._ensure_name_available(session, draft.name, exclude_route_id=route_id)
                self._apply_draft_in_session(session, row, draft)
                route = row.to_domain()
        logger.info(f"Updated route {route.id} '{route.name}'")
        return route

    # === Session-level helpers ===

    def _get_route_row(self, session, route_id: int) -> RouteRow:
        row = get_row(session, RouteRow, route_id)
        if row is None:
            raise NotFoundError("Route", route_id)
        return row

    def _find_route_by_name(
        self, session, name: str, exclude_route_id: Optional[int] = None
    ) -> Optional[RouteRow]:
        query = session.query(RouteRow).filter(RouteRow.name == name)
        if exclude_route_id is not None:
            query = query.filter(RouteRow.id != exclude_route_id)
        return query.first()

    def _ensure_name_available(
        self, session, name: str, exclude_route_id: Optional[int] = None
    ) -> None:
        conflicting = self._find_route_by_name(session, name, exclude_route_id)
        if conflicting is not None:
            logger.warning(f"Rejected duplicate route name '{name}'")
            raise DuplicateNameError(name, conflicting.to_domain())

    @contextmanager
    def _translating_name_conflicts(
        self, names: Sequence[str], exclude_route_id: Optional[int] = None
    ):
        """Turn a unique-constraint race on route names into DuplicateNameError."""
        try:
            yield
        except IntegrityError as e:
            with self.session_scope() as session:
                for name in names:
                    conflicting = self._find_route_by_name(session, name, exclude_route_id)
                    if conflicting is not None:
                        raise DuplicateNameError(name, conflicting.to_domain()) from e
            raise RepositoryError(f"Integrity error while writing routes: {e.orig}") from e

    def _resolve_draft_objects(self, session, draft: RouteDraft):
        return {
            Relation.COORDINATES: self._resolve_coordinates_in_session(session, draft.coordinates),
            Relation.FROM: self._resolve_location_in_session(session, draft.from_location),
            Relation.TO: self._resolve_location_in_session(session, draft.to_location),
        }

    def _create_route_in_session(self, session, draft: RouteDraft) -> RouteRow:
        objects = self._resolve_draft_objects(session, draft)
        row = RouteRow(
            name=draft.name,
            distance=draft.distance,
            rating=draft.rating,
            creation_date=utc_now(),
        )
        session.add(row)
        session.flush()
        for relation, obj in objects.items():
            self._attach_reference_in_session(session, relation, obj.id, row.id)
        session.refresh(row)
        return row

    def _apply_draft_in_session(self, session, row: RouteRow, draft: RouteDraft) -> None:
        row.name = draft.name
        row.distance = draft.distance
        row.rating = draft.rating

        objects = self._resolve_draft_objects(session, draft)
        old_ids = {relation: row.object_id_for(relation) for relation in Relation}
        changed = [
            relation for relation, obj in objects.items() if obj.id != old_ids[relation]
        ]

        # Detach everything first so a value can move between from and to
        for relation in changed:
            self._detach_reference_in_session(session, relation, old_ids[relation], row.id)
        for relation in changed:
            self._attach_reference_in_session(session, relation, objects[relation].id, row.id)
        self._purge_orphans_in_session(
            session, [(relation.kind, old_ids[relation]) for relation in changed]
        )
        session.flush()
        session.refresh(row)

    def _repoint_relation_in_session(self, session, route_id: int, relation: Relation, value):
        """Point one relation of a stored route at ``value``.

        Runs the update path with only that relation changed, so the route
        rules still hold and the previous object is promoted or purged.
        """
        row = self._get_route_row(session, route_id)
        draft = replace(row.to_draft(), **{RELATION_FIELDS[relation]: value})
        self._apply_draft_in_session(session, row, validate_route_draft(draft))
        return row
