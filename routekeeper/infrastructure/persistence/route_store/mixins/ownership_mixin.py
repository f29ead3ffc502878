"""Ownership tracking mixin.

Every route-to-object link is one ``object_references`` row. The owner of a
shared object is always one of its referencing routes; an object with no
references left is garbage and is purged in the same transaction.
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

from routekeeper.domain.errors import (
    InvalidArgumentError,
    InvalidRebindTargetError,
    NotFoundError,
)
from routekeeper.domain.models import ObjectKind, Relation

from ..models import CoordinatesRow, LocationRow, ObjectReferenceRow, RouteRow
from ..utils import get_row, retry_read_once

logger = logging.getLogger(__name__)


class OwnershipMixin:
    """Mixin providing reference counting and ownership of shared objects."""

    @staticmethod
    def _model_for_kind(kind: Union[ObjectKind, str]):
        if ObjectKind(kind) is ObjectKind.COORDINATES:
            return CoordinatesRow
        return LocationRow

    def _get_shared_object(self, session, kind: ObjectKind, object_id: int):
        obj = get_row(session, self._model_for_kind(kind), object_id)
        if obj is None:
            raise NotFoundError(ObjectKind(kind).value.capitalize(), object_id)
        return obj

    def _referencing_route_ids(
        self, session, kind: ObjectKind, object_id: int, exclude_route_id: Optional[int] = None
    ) -> List[int]:
        """Distinct ids of routes referencing the object, ascending."""
        query = session.query(ObjectReferenceRow.route_id).filter(
            ObjectReferenceRow.kind == ObjectKind(kind).value,
            ObjectReferenceRow.object_id == object_id,
        )
        if exclude_route_id is not None:
            query = query.filter(ObjectReferenceRow.route_id != exclude_route_id)
        rows = query.distinct().order_by(ObjectReferenceRow.route_id).all()
        return [route_id for (route_id,) in rows]

    # === Public operations ===

    def attach_reference(self, relation: Union[Relation, str], object_id: int, route_id: int) -> None:
        """Point a route's ``relation`` at a stored object.

        The object the route referenced through ``relation`` before is
        detached in the same transaction. Attaching the object already
        referenced changes nothing.

        Raises:
            NotFoundError: If the route or the object does not exist
            ValidationError: If the route would start and end at the same location
            ZeroDistanceRouteError: If its endpoints would be the same point
        """
        relation = Relation(relation)
        with self.session_scope() as session:
            obj = self._get_shared_object(session, relation.kind, object_id)
            self._repoint_relation_in_session(session, route_id, relation, obj.to_draft())

    def detach_reference(
        self,
        relation: Union[Relation, str],
        object_id: int,
        route_id: int,
        replacement_id: Optional[int] = None,
    ) -> None:
        """Remove a route's reference to an object.

        A stored route references one object per relation, so the detach
        attaches ``replacement_id`` in its place within the same transaction.
        The detached object is purged when it was its last reference; an
        owner leaving a shared object is replaced by the lowest remaining id.

        Raises:
            NotFoundError: If the route does not reference the object through
                ``relation``, or the replacement does not exist
            InvalidArgumentError: If no replacement is given
        """
        relation = Relation(relation)
        with self.session_scope() as session:
            route = self._get_route_row(session, route_id)
            if route.object_id_for(relation) != object_id:
                raise NotFoundError(
                    "Reference",
                    message=f"Route {route_id} does not reference {relation.kind.value} "
                    f"{object_id} through {relation.value}",
                )
            if replacement_id is None:
                raise InvalidArgumentError(
                    f"Route {route_id} cannot be left without its {relation.value} value; "
                    "give the replacement to attach"
                )
            replacement = self._get_shared_object(session, relation.kind, replacement_id)
            self._repoint_relation_in_session(session, route_id, relation, replacement.to_draft())

    @retry_read_once
    def usage_count(self, kind: Union[ObjectKind, str], object_id: int) -> int:
        """Number of distinct routes referencing the object, owner excluded."""
        with self.session_scope(readonly=True) as session:
            obj = self._get_shared_object(session, ObjectKind(kind), object_id)
            route_ids = self._referencing_route_ids(session, ObjectKind(kind), object_id)
            return len([rid for rid in route_ids if rid != obj.owner_route_id])

    def reassign_owner(self, kind: Union[ObjectKind, str], object_id: int, new_owner_route_id: int) -> None:
        """Promote a referencing route to owner.

        Raises:
            InvalidRebindTargetError: If the route does not reference the object
        """
        with self.session_scope() as session:
            self._reassign_owner_in_session(session, ObjectKind(kind), object_id, new_owner_route_id)

    # === Session-level helpers ===

    def _attach_reference_in_session(
        self, session, relation: Relation, object_id: int, route_id: int
    ) -> None:
        obj = self._get_shared_object(session, relation.kind, object_id)
        route = session.get(RouteRow, route_id)
        if route is None:
            raise NotFoundError("Route", route_id)
        session.add(
            ObjectReferenceRow(
                route_id=route_id,
                relation=relation.value,
                kind=relation.kind.value,
                object_id=object_id,
            )
        )
        route.set_object_id(relation, object_id)
        if obj.owner_route_id is None:
            obj.owner_route_id = route_id
        session.flush()

    def _detach_reference_in_session(
        self, session, relation: Relation, object_id: int, route_id: int
    ) -> bool:
        """Delete the reference and keep the owner invariant.

        Returns:
            True when no reference to the object remains
        """
        ref = (
            session.query(ObjectReferenceRow)
            .filter(
                ObjectReferenceRow.route_id == route_id,
                ObjectReferenceRow.relation == relation.value,
                ObjectReferenceRow.object_id == object_id,
            )
            .one_or_none()
        )
        if ref is None:
            raise NotFoundError(
                "Reference",
                message=f"Route {route_id} does not reference {relation.kind.value} "
                f"{object_id} through {relation.value}",
            )
        session.delete(ref)
        route = session.get(RouteRow, route_id)
        if route is not None and route.object_id_for(relation) == object_id:
            route.set_object_id(relation, None)
        session.flush()

        obj = self._get_shared_object(session, relation.kind, object_id)
        remaining = self._referencing_route_ids(session, relation.kind, object_id)
        if not remaining:
            obj.owner_route_id = None
        elif obj.owner_route_id not in remaining:
            logger.info(
                f"Owner route {obj.owner_route_id} left {relation.kind.value} {object_id}, "
                f"promoting route {remaining[0]}"
            )
            obj.owner_route_id = remaining[0]
        session.flush()
        return not remaining

    def _reassign_owner_in_session(
        self, session, kind: ObjectKind, object_id: int, new_owner_route_id: int
    ) -> None:
        obj = self._get_shared_object(session, kind, object_id)
        if new_owner_route_id not in self._referencing_route_ids(session, kind, object_id):
            raise InvalidRebindTargetError(
                kind.value,
                new_owner_route_id,
                f"Route {new_owner_route_id} does not reference {kind.value} {object_id}",
            )
        obj.owner_route_id = new_owner_route_id
        session.flush()
        logger.info(f"Route {new_owner_route_id} now owns {kind.value} {object_id}")

    def _purge_orphans_in_session(
        self, session, candidates: Iterable[Tuple[ObjectKind, int]]
    ) -> int:
        """Delete the candidate objects that have no references left."""
        purged = 0
        for kind, object_id in set(candidates):
            if self._referencing_route_ids(session, kind, object_id):
                continue
            obj = session.get(self._model_for_kind(kind), object_id)
            if obj is None:
                continue
            session.delete(obj)
            purged += 1
            logger.info(f"Purged orphaned {ObjectKind(kind).value} {object_id}")
        if purged:
            session.flush()
        return purged
