"""
RouteKeeper Domain Exceptions

Defines custom exceptions for domain and application errors. Every error that
a caller can act on carries the structured detail needed to render a precise
message (conflicting route, offending points, per-line import errors).
"""

from typing import Any, Dict, List, Optional, Sequence


class RouteKeeperError(Exception):
    """Base exception for all RouteKeeper exceptions."""

    def details(self) -> Dict[str, Any]:
        """Structured payload describing the error (empty by default)."""
        return {}


class DomainError(RouteKeeperError):
    """Base exception for domain errors."""

    pass


class ApplicationError(RouteKeeperError):
    """Base exception for application errors."""

    pass


# Validation Exceptions
class ValidationError(DomainError):
    """Malformed or out-of-range field.

    Attributes:
        errors: One human-readable message per offending field
    """

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors) if errors else [message]

    def details(self) -> Dict[str, Any]:
        return {"errors": list(self.errors)}


class InvalidArgumentError(DomainError):
    """Bad sort column, cursor or page size."""

    pass


# Route Exceptions
class NotFoundError(DomainError):
    """Requested entity does not exist."""

    def __init__(self, entity: str, entity_id: Any = None, message: Optional[str] = None):
        super().__init__(message or f"{entity} not found with id: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id

    def details(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class DuplicateNameError(DomainError):
    """Route name already taken by another route.

    Attributes:
        name: The rejected name
        conflicting_route: The route currently holding the name, when known
    """

    def __init__(self, name: str, conflicting_route=None):
        super().__init__(f"Route with name '{name}' already exists")
        self.name = name
        self.conflicting_route = conflicting_route

    def details(self) -> Dict[str, Any]:
        conflicting = None
        if self.conflicting_route is not None:
            conflicting = self.conflicting_route.to_dict()
        return {"name": self.name, "conflicting_route": conflicting}


class ZeroDistanceRouteError(DomainError):
    """Start and end points of a route coincide."""

    def __init__(self, from_point: Sequence[float], to_point: Sequence[float]):
        super().__init__(
            f"Route start {tuple(from_point)} and end {tuple(to_point)} are the same point"
        )
        self.from_point = tuple(from_point)
        self.to_point = tuple(to_point)

    def details(self) -> Dict[str, Any]:
        return {"from_point": list(self.from_point), "to_point": list(self.to_point)}


# Deletion Exceptions
class InvalidRebindTargetError(DomainError):
    """Rebind target does not reference the shared object."""

    def __init__(self, relation: str, target_route_id: int, message: Optional[str] = None):
        super().__init__(
            message
            or f"Route {target_route_id} does not reference the {relation} object"
        )
        self.relation = relation
        self.target_route_id = target_route_id

    def details(self) -> Dict[str, Any]:
        return {"relation": self.relation, "target_route_id": self.target_route_id}


class MissingRebindTargetError(DomainError):
    """Deletion needs a rebind target for one or more relations."""

    def __init__(self, route_id: int, relations: Sequence[str]):
        super().__init__(
            f"Route {route_id} owns shared objects; rebind target required for: "
            + ", ".join(relations)
        )
        self.route_id = route_id
        self.relations = list(relations)

    def details(self) -> Dict[str, Any]:
        return {"route_id": self.route_id, "relations": list(self.relations)}


# Import Exceptions
class ImportAbortedError(ApplicationError):
    """Bulk import rejected; nothing was written.

    Attributes:
        errors: One line-indexed message per failing record
    """

    def __init__(self, errors: Sequence[str], message: str = "Import aborted"):
        super().__init__(message)
        self.errors = list(errors)

    def details(self) -> Dict[str, Any]:
        return {"errors": list(self.errors)}


# Repository Exceptions
class RepositoryError(ApplicationError):
    """Datastore failure without a domain meaning."""

    pass
