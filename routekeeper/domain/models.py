"""
Domain Route Entities.

This module contains the value objects and aggregates of the route storage
engine: shared Coordinates and Location values, the Route aggregate that
references them, the drafts callers submit to create or update routes, and
the ImportOperation audit record of the bulk import pipeline.

Shared values are content-addressed: two drafts with equal equality keys
resolve to the same stored object, which is then referenced by several
routes and owned by exactly one of them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .status import ImportStatus


class ObjectKind(str, Enum):
    """Kinds of shared value objects."""

    COORDINATES = "coordinates"
    LOCATION = "location"


class Relation(str, Enum):
    """Relations through which a route references a shared object."""

    COORDINATES = "coordinates"
    FROM = "from"
    TO = "to"

    @property
    def kind(self) -> ObjectKind:
        """Kind of object stored behind this relation."""
        if self is Relation.COORDINATES:
            return ObjectKind.COORDINATES
        return ObjectKind.LOCATION


# --- Drafts (caller input) ---


@dataclass(frozen=True)
class CoordinatesDraft:
    """Candidate Coordinates value; ``x`` may be absent."""

    y: float
    x: Optional[float] = None

    def equality_key(self) -> Tuple[Optional[float], float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class LocationDraft:
    """Candidate Location value; equality is the exact ``(x, y, name)`` triple."""

    x: float
    y: float
    name: Optional[str] = None

    def equality_key(self) -> Tuple[float, float, Optional[str]]:
        return (self.x, self.y, self.name)


@dataclass(frozen=True)
class RouteDraft:
    """
    Caller-supplied route content for create and update.

    Attributes:
        name: Route name, unique across all routes
        coordinates: Coordinates value of the route
        from_location: Start location
        to_location: End location
        distance: Declared distance, at least 2
        rating: Rating, at least 1
    """

    name: str
    coordinates: CoordinatesDraft
    from_location: LocationDraft
    to_location: LocationDraft
    distance: int
    rating: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> RouteDraft:
        """Build a draft from the nested dictionary shape used by callers."""
        coords = data["coordinates"]
        from_data = data["from"] if "from" in data else data["from_location"]
        to_data = data["to"] if "to" in data else data["to_location"]
        return cls(
            name=data["name"],
            coordinates=CoordinatesDraft(x=coords.get("x"), y=coords["y"]),
            from_location=LocationDraft(
                x=from_data["x"], y=from_data["y"], name=from_data.get("name")
            ),
            to_location=LocationDraft(
                x=to_data["x"], y=to_data["y"], name=to_data.get("name")
            ),
            distance=data["distance"],
            rating=data["rating"],
        )


# --- Stored entities ---


@dataclass
class Coordinates:
    """Stored Coordinates value."""

    id: int
    y: float
    x: Optional[float] = None
    owner_route_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Location:
    """Stored Location value."""

    id: int
    x: float
    y: float
    name: Optional[str] = None
    owner_route_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Route:
    """
    Route aggregate with its resolved shared objects.

    Attributes:
        id: Route identifier
        name: Unique route name
        coordinates: Shared Coordinates referenced through ``coordinates``
        from_location: Shared Location referenced through ``from``
        to_location: Shared Location referenced through ``to``
        distance: Declared distance
        rating: Route rating
        creation_date: UTC creation timestamp
    """

    id: int
    name: str
    coordinates: Coordinates
    from_location: Location
    to_location: Location
    distance: int
    rating: int
    creation_date: datetime

    def object_id(self, relation: Relation) -> int:
        """Id of the shared object referenced through ``relation``."""
        if relation is Relation.COORDINATES:
            return self.coordinates.id
        if relation is Relation.FROM:
            return self.from_location.id
        return self.to_location.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coordinates": self.coordinates.to_dict(),
            "from": self.from_location.to_dict(),
            "to": self.to_location.to_dict(),
            "distance": self.distance,
            "rating": self.rating,
            "creation_date": self.creation_date.isoformat(),
        }


# --- Read models ---


@dataclass
class CursorPage:
    """One page of the cursor pagination engine."""

    content: List[Route]
    next_cursor: Optional[str]
    prev_cursor: Optional[str]
    has_next: bool
    has_prev: bool
    total_count: int

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class RelationDependency:
    """
    Usage of one shared object of a route slated for deletion.

    Attributes:
        relation: Relation the route uses to reference the object
        object_id: Shared object identifier
        is_owner: Whether the route is the object's current owner
        usage_count: Referencing routes other than the inspected route
        candidates: Other routes referencing the object (rebind targets)
    """

    relation: Relation
    object_id: int
    is_owner: bool
    usage_count: int
    candidates: List[Route] = field(default_factory=list)

    @property
    def needs_rebind(self) -> bool:
        return self.is_owner and self.usage_count > 0


@dataclass
class DependencyReport:
    """Result of the read-only dependency check for a route."""

    route: Route
    coordinates: RelationDependency
    from_location: RelationDependency
    to_location: RelationDependency

    def relations(self) -> List[RelationDependency]:
        return [self.coordinates, self.from_location, self.to_location]

    def for_relation(self, relation: Relation) -> RelationDependency:
        return {
            Relation.COORDINATES: self.coordinates,
            Relation.FROM: self.from_location,
            Relation.TO: self.to_location,
        }[relation]

    @property
    def needs_rebind(self) -> bool:
        return any(dep.needs_rebind for dep in self.relations())


@dataclass
class ImportOperation:
    """
    Audit record of one bulk import call.

    Attributes:
        id: Operation identifier
        username: User that started the import
        filename: Name of the imported file
        status: Current status (see ImportStatus)
        start_time: When the import started
        end_time: When the import was finalized, None while in progress
        total_records: Records found in the input
        processed_records: Records parsed and validated
        successful_records: Records committed
        failed_records: Records rejected
        errors: One line-indexed message per failing record
        error_message: Summary of the failure, if any
    """

    id: int
    username: str
    filename: str
    status: ImportStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    total_records: int = 0
    processed_records: int = 0
    successful_records: int = 0
    failed_records: int = 0
    errors: List[str] = field(default_factory=list)
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["start_time"] = self.start_time.isoformat()
        data["end_time"] = self.end_time.isoformat() if self.end_time else None
        return data


@dataclass
class ImportStats:
    """Per-user import counters."""

    total_operations: int
    successful_operations: int
    failed_operations: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
