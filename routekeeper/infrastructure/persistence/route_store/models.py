"""
SQLAlchemy models for route store persistence.

Shared value objects (coordinates, locations) are content-addressed through a
unique ``value_key`` column and carry the id of their owning route. Every
route-to-object link is also recorded in ``object_references``, one row per
(route, relation), which is what usage counting and garbage collection read.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from routekeeper.domain.models import (
    Coordinates,
    CoordinatesDraft,
    ImportOperation,
    Location,
    LocationDraft,
    Relation,
    Route,
    RouteDraft,
)
from routekeeper.domain.status import ImportStatus

from .utils.json_helpers import dumps_json, loads_json

Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class JSONType(TypeDecorator):
    """
    Custom SQLAlchemy type for storing JSON data in database.

    Serializes Python lists and dictionaries to JSON text on write and
    deserializes them back on read.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return dumps_json(value)

    def process_result_value(self, value, dialect):
        return loads_json(value)


class CoordinatesRow(Base):
    """
    Coordinates table model.

    Attributes:
        id: Auto-incremented primary key
        x: Optional x component
        y: y component (at most 807)
        value_key: Canonical ``[x, y]`` JSON used for deduplication
        owner_route_id: Route that owns the value, NULL until first attach
    """

    __tablename__ = "coordinates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    x = Column(Float, nullable=True)
    y = Column(Float, CheckConstraint("y <= 807", name="ck_coordinates_y_max"), nullable=False)
    value_key = Column(String, nullable=False, unique=True)
    owner_route_id = Column(
        Integer,
        ForeignKey("routes.id", use_alter=True, name="fk_coordinates_owner"),
        nullable=True,
    )

    def to_domain(self) -> Coordinates:
        return Coordinates(id=self.id, x=self.x, y=self.y, owner_route_id=self.owner_route_id)

    def to_draft(self) -> CoordinatesDraft:
        return CoordinatesDraft(x=self.x, y=self.y)


class LocationRow(Base):
    """
    Location table model.

    Attributes:
        id: Auto-incremented primary key
        x: x component
        y: y component
        name: Optional name; blank and NULL are different values
        value_key: Canonical ``[x, y, name]`` JSON used for deduplication
        owner_route_id: Route that owns the value, NULL until first attach
    """

    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    x = Column(Float, nullable=False)
    y = Column(Float, nullable=False)
    name = Column(String, nullable=True)
    value_key = Column(String, nullable=False, unique=True)
    owner_route_id = Column(
        Integer,
        ForeignKey("routes.id", use_alter=True, name="fk_locations_owner"),
        nullable=True,
    )

    def to_domain(self) -> Location:
        return Location(
            id=self.id, x=self.x, y=self.y, name=self.name, owner_route_id=self.owner_route_id
        )

    def to_draft(self) -> LocationDraft:
        return LocationDraft(x=self.x, y=self.y, name=self.name)


class RouteRow(Base):
    """
    Route table model.

    The three foreign keys mirror the route's rows in ``object_references``
    and are only written by the ownership tracker. They are NULL between a
    detach and the following attach of the same relation.
    """

    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    coordinates_id = Column(Integer, ForeignKey("coordinates.id"), nullable=True)
    from_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    to_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    distance = Column(Integer, CheckConstraint("distance >= 2", name="ck_routes_distance"), nullable=False)
    rating = Column(Integer, CheckConstraint("rating >= 1", name="ck_routes_rating"), nullable=False)
    creation_date = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    # Relationships
    coordinates = relationship("CoordinatesRow", foreign_keys=[coordinates_id], lazy="joined")
    from_location = relationship("LocationRow", foreign_keys=[from_location_id], lazy="joined")
    to_location = relationship("LocationRow", foreign_keys=[to_location_id], lazy="joined")

    RELATION_COLUMNS = {
        Relation.COORDINATES: "coordinates_id",
        Relation.FROM: "from_location_id",
        Relation.TO: "to_location_id",
    }

    def object_id_for(self, relation: Relation) -> Optional[int]:
        return getattr(self, self.RELATION_COLUMNS[relation])

    def set_object_id(self, relation: Relation, object_id: Optional[int]) -> None:
        setattr(self, self.RELATION_COLUMNS[relation], object_id)

    def to_draft(self) -> RouteDraft:
        return RouteDraft(
            name=self.name,
            coordinates=self.coordinates.to_draft(),
            from_location=self.from_location.to_draft(),
            to_location=self.to_location.to_draft(),
            distance=self.distance,
            rating=self.rating,
        )

    def to_domain(self) -> Route:
        return Route(
            id=self.id,
            name=self.name,
            coordinates=self.coordinates.to_domain(),
            from_location=self.from_location.to_domain(),
            to_location=self.to_location.to_domain(),
            distance=self.distance,
            rating=self.rating,
            creation_date=_as_utc(self.creation_date),
        )


class ObjectReferenceRow(Base):
    """
    One reference from a route to a shared object through a relation.

    Attributes:
        route_id: Referencing route
        relation: ``coordinates``, ``from`` or ``to``
        kind: ``coordinates`` or ``location``, derived from the relation
        object_id: Id of the referenced row in the kind's table
    """

    __tablename__ = "object_references"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False)
    relation = Column(
        String,
        CheckConstraint("relation IN ('coordinates', 'from', 'to')", name="ck_reference_relation"),
        nullable=False,
    )
    kind = Column(
        String,
        CheckConstraint("kind IN ('coordinates', 'location')", name="ck_reference_kind"),
        nullable=False,
    )
    object_id = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("route_id", "relation", name="unique_reference_per_relation"),
        Index("ix_object_references_kind_object", "kind", "object_id"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "route_id": self.route_id,
            "relation": self.relation,
            "kind": self.kind,
            "object_id": self.object_id,
        }


class ImportOperationRow(Base):
    """
    Import operation audit table model.

    Attributes:
        errors: JSON list with one line-indexed message per failing record
    """

    __tablename__ = "import_operations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, nullable=False, index=True)
    filename = Column(String, nullable=False)
    status = Column(
        String,
        CheckConstraint(
            "status IN ('IN_PROGRESS', 'SUCCESS', 'FAILED')", name="ck_import_status"
        ),
        nullable=False,
    )
    start_time = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    end_time = Column(DateTime(timezone=True))
    total_records = Column(Integer, nullable=False, default=0)
    processed_records = Column(Integer, nullable=False, default=0)
    successful_records = Column(Integer, nullable=False, default=0)
    failed_records = Column(Integer, nullable=False, default=0)
    errors = Column(JSONType, default=list)
    error_message = Column(Text)

    def to_domain(self) -> ImportOperation:
        return ImportOperation(
            id=self.id,
            username=self.username,
            filename=self.filename,
            status=ImportStatus(self.status),
            start_time=_as_utc(self.start_time),
            end_time=_as_utc(self.end_time),
            total_records=self.total_records or 0,
            processed_records=self.processed_records or 0,
            successful_records=self.successful_records or 0,
            failed_records=self.failed_records or 0,
            errors=list(self.errors or []),
            error_message=self.error_message,
        )
