"""Read-only route queries.

Aggregate lookups over routes and the listings of shared values currently in
use, consumed by callers for reports and autocomplete.
"""

import logging
import re
from typing import List, Optional, Tuple, Union

from sqlalchemy import and_, func, select
from sqlalchemy.orm import aliased

from routekeeper.domain.errors import InvalidArgumentError, NotFoundError
from routekeeper.domain.models import Coordinates, Location, ObjectKind, Relation, Route
from routekeeper.domain.validation import validate_threshold

from ..models import CoordinatesRow, LocationRow, ObjectReferenceRow, RouteRow
from ..utils import retry_read_once

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?"
POINT_PATTERN = re.compile(rf"^\(\s*({_NUMBER})\s*,\s*({_NUMBER})\s*\)$")

BETWEEN_ORDERINGS = {
    "name": (RouteRow.name.asc(), RouteRow.id.asc()),
    "distance": (RouteRow.distance.asc(), RouteRow.id.asc()),
    "rating": (RouteRow.rating.desc(), RouteRow.id.asc()),
    "creation_date": (RouteRow.creation_date.desc(), RouteRow.id.asc()),
}


def parse_location_spec(value: str) -> Union[str, Tuple[float, float]]:
    """Interpret an endpoint given either as a location name or as ``"(x, y)"``."""
    match = POINT_PATTERN.match(value.strip())
    if match:
        return float(match.group(1)), float(match.group(2))
    return value


class QueriesMixin:
    """Mixin providing read-only queries over routes and shared values."""

    @retry_read_once
    def route_with_max_name(self) -> Route:
        """Route whose name is lexicographically greatest.

        Raises:
            NotFoundError: If there are no routes
        """
        with self.session_scope(readonly=True) as session:
            row = session.query(RouteRow).order_by(RouteRow.name.desc()).first()
            if row is None:
                raise NotFoundError("Route", message="No routes stored")
            return row.to_domain()

    @retry_read_once
    def route_count_rating_less_than(self, threshold: int) -> int:
        threshold = validate_threshold(threshold)
        with self.session_scope(readonly=True) as session:
            return (
                session.query(func.count(RouteRow.id))
                .filter(RouteRow.rating < threshold)
                .scalar()
            )

    @retry_read_once
    def route_list_rating_greater_than(self, threshold: int) -> List[Route]:
        """Routes rated above ``threshold``, best rated first."""
        threshold = validate_threshold(threshold)
        with self.session_scope(readonly=True) as session:
            rows = (
                session.query(RouteRow)
                .filter(RouteRow.rating > threshold)
                .order_by(RouteRow.rating.desc(), RouteRow.id.asc())
                .all()
            )
            return [row.to_domain() for row in rows]

    @retry_read_once
    def route_list_between(
        self, from_spec: str, to_spec: str, sort_by: Optional[str] = None
    ) -> List[Route]:
        """Routes going from one endpoint to another.

        Each endpoint is matched by exact location name, or by point when
        given as ``"(x, y)"``. The pair is literal: routes going the other
        way are not included.

        Args:
            from_spec: Start endpoint
            to_spec: End endpoint
            sort_by: ``name`` (default), ``distance``, ``rating`` (best
                first) or ``creation_date`` (newest first)

        Raises:
            InvalidArgumentError: If ``sort_by`` is not a known ordering
        """
        ordering = BETWEEN_ORDERINGS.get((sort_by or "name").strip().lower())
        if ordering is None:
            raise InvalidArgumentError(
                f"Unknown ordering: {sort_by}. Allowed: {', '.join(BETWEEN_ORDERINGS)}"
            )
        start = aliased(LocationRow)
        end = aliased(LocationRow)
        with self.session_scope(readonly=True) as session:
            rows = (
                session.query(RouteRow)
                .join(start, RouteRow.from_location_id == start.id)
                .join(end, RouteRow.to_location_id == end.id)
                .filter(
                    self._endpoint_condition(start, parse_location_spec(from_spec)),
                    self._endpoint_condition(end, parse_location_spec(to_spec)),
                )
                .order_by(*ordering)
                .all()
            )
            return [row.to_domain() for row in rows]

    @staticmethod
    def _endpoint_condition(location, spec):
        if isinstance(spec, tuple):
            return and_(location.x == spec[0], location.y == spec[1])
        return location.name == spec

    # === Values in use ===

    @staticmethod
    def _referenced_ids(kind: ObjectKind, relation: Optional[Relation] = None):
        stmt = select(ObjectReferenceRow.object_id).where(ObjectReferenceRow.kind == kind.value)
        if relation is not None:
            stmt = stmt.where(ObjectReferenceRow.relation == relation.value)
        return stmt

    @retry_read_once
    def available_coordinates(self) -> List[Coordinates]:
        with self.session_scope(readonly=True) as session:
            rows = (
                session.query(CoordinatesRow)
                .filter(CoordinatesRow.id.in_(self._referenced_ids(ObjectKind.COORDINATES)))
                .order_by(CoordinatesRow.id)
                .all()
            )
            return [row.to_domain() for row in rows]

    def _available_locations(self, relation: Optional[Relation] = None) -> List[Location]:
        with self.session_scope(readonly=True) as session:
            referenced = self._referenced_ids(ObjectKind.LOCATION, relation)
            rows = (
                session.query(LocationRow)
                .filter(LocationRow.id.in_(referenced))
                .order_by(LocationRow.id)
                .all()
            )
            return [row.to_domain() for row in rows]

    @retry_read_once
    def available_locations(self) -> List[Location]:
        return self._available_locations()

    @retry_read_once
    def available_from_locations(self) -> List[Location]:
        return self._available_locations(Relation.FROM)

    @retry_read_once
    def available_to_locations(self) -> List[Location]:
        return self._available_locations(Relation.TO)

    @retry_read_once
    def available_location_names(self) -> List[str]:
        """Distinct non-null names of the locations in use, sorted."""
        with self.session_scope(readonly=True) as session:
            referenced = self._referenced_ids(ObjectKind.LOCATION)
            rows = (
                session.query(LocationRow.name)
                .filter(LocationRow.id.in_(referenced), LocationRow.name.isnot(None))
                .distinct()
                .order_by(LocationRow.name)
                .all()
            )
            return [name for (name,) in rows]
