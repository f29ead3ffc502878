"""
RouteKeeper Domain

Entities, validation rules, cursor tokens and deletion planning.
Free of persistence and transport concerns.
"""

from .cursor import CompositeCursor, NavDirection, SortDirection, SortField
from .deletion import DeletionAction, DeletionPlan, RelationDecision, build_deletion_plan
from .errors import (
    ApplicationError,
    DomainError,
    DuplicateNameError,
    ImportAbortedError,
    InvalidArgumentError,
    InvalidRebindTargetError,
    MissingRebindTargetError,
    NotFoundError,
    RepositoryError,
    RouteKeeperError,
    ValidationError,
    ZeroDistanceRouteError,
)
from .models import (
    Coordinates,
    CoordinatesDraft,
    CursorPage,
    DependencyReport,
    ImportOperation,
    ImportStats,
    Location,
    LocationDraft,
    ObjectKind,
    Relation,
    RelationDependency,
    Route,
    RouteDraft,
)
from .status import ImportStatus

__all__ = [
    # Entities
    "Coordinates",
    "CoordinatesDraft",
    "CursorPage",
    "DependencyReport",
    "ImportOperation",
    "ImportStats",
    "ImportStatus",
    "Location",
    "LocationDraft",
    "ObjectKind",
    "Relation",
    "RelationDependency",
    "Route",
    "RouteDraft",
    # Cursors
    "CompositeCursor",
    "NavDirection",
    "SortDirection",
    "SortField",
    # Deletion
    "DeletionAction",
    "DeletionPlan",
    "RelationDecision",
    "build_deletion_plan",
    # Errors
    "ApplicationError",
    "DomainError",
    "DuplicateNameError",
    "ImportAbortedError",
    "InvalidArgumentError",
    "InvalidRebindTargetError",
    "MissingRebindTargetError",
    "NotFoundError",
    "RepositoryError",
    "RouteKeeperError",
    "ValidationError",
    "ZeroDistanceRouteError",
]
