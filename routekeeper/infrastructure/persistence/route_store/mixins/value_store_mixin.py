"""Value store mixin.

Content-addressed storage of the shared Coordinates and Location values.
Resolution is insert-or-fetch: an existing row with the same value key is
reused, otherwise a new row is inserted inside a SAVEPOINT. When a concurrent
transaction wins the insert, the unique constraint on ``value_key`` fails the
savepoint and the winner's row is fetched instead.
"""

import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import IntegrityError

from routekeeper.domain.errors import InvalidArgumentError, NotFoundError
from routekeeper.domain.models import (
    Coordinates,
    CoordinatesDraft,
    Location,
    LocationDraft,
    ObjectKind,
    Relation,
)
from routekeeper.domain.validation import validate_coordinates, validate_location

from ..models import CoordinatesRow, LocationRow
from ..utils import coordinates_value_key, get_row, location_value_key, retry_read_once

logger = logging.getLogger(__name__)


class ValueStoreMixin:
    """Mixin providing deduplicated storage of shared values."""

    def resolve(
        self,
        candidate: Union[CoordinatesDraft, LocationDraft],
        route_id: int,
        relation: Optional[Union[Relation, str]] = None,
    ) -> int:
        """Resolve a value for one relation of a route.

        The route's relation is pointed at the stored row with the same value,
        or at a new row the route then owns. The value it referenced before is
        detached in the same transaction.

        Args:
            candidate: Coordinates or location value
            route_id: Route taking the value
            relation: ``from`` or ``to`` for a location; coordinates need none

        Returns:
            Id of the existing or newly created row

        Raises:
            ValidationError: If the value is out of range or non-finite
            InvalidArgumentError: If the relation does not hold this kind of value
            NotFoundError: If the route does not exist
        """
        if isinstance(candidate, CoordinatesDraft):
            validate_coordinates(candidate)
            expected = ObjectKind.COORDINATES
        else:
            validate_location(candidate)
            expected = ObjectKind.LOCATION
        try:
            relation = Relation(relation) if relation else Relation.COORDINATES
        except ValueError:
            raise InvalidArgumentError(f"Unknown relation: {relation}") from None
        if relation.kind is not expected:
            raise InvalidArgumentError(
                f"Relation '{relation.value}' does not hold a {expected.value} value"
            )
        with self.session_scope() as session:
            row = self._repoint_relation_in_session(session, route_id, relation, candidate)
            return row.object_id_for(relation)

    @retry_read_once
    def coordinates_get(self, coordinates_id: int) -> Coordinates:
        with self.session_scope(readonly=True) as session:
            row = get_row(session, CoordinatesRow, coordinates_id)
            if row is None:
                raise NotFoundError("Coordinates", coordinates_id)
            return row.to_domain()

    @retry_read_once
    def location_get(self, location_id: int) -> Location:
        with self.session_scope(readonly=True) as session:
            row = get_row(session, LocationRow, location_id)
            if row is None:
                raise NotFoundError("Location", location_id)
            return row.to_domain()

    def _resolve_coordinates_in_session(self, session, candidate: CoordinatesDraft) -> CoordinatesRow:
        return self._insert_or_fetch(
            session,
            CoordinatesRow,
            coordinates_value_key(candidate),
            {"x": candidate.x, "y": candidate.y},
        )

    def _resolve_location_in_session(self, session, candidate: LocationDraft) -> LocationRow:
        return self._insert_or_fetch(
            session,
            LocationRow,
            location_value_key(candidate),
            {"x": candidate.x, "y": candidate.y, "name": candidate.name},
        )

    def _insert_or_fetch(self, session, model, value_key: str, values: Dict[str, Any]):
        existing = session.query(model).filter(model.value_key == value_key).one_or_none()
        if existing is not None:
            return existing

        try:
            with session.begin_nested():
                row = model(value_key=value_key, **values)
                session.add(row)
        except IntegrityError:
            winner = session.query(model).filter(model.value_key == value_key).one_or_none()
            if winner is None:
                raise
            logger.debug(f"Concurrent insert of {model.__tablename__} {value_key}, fetched winner")
            return winner

        logger.debug(f"Created {model.__tablename__} row {row.id} for {value_key}")
        return row
