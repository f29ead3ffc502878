"""
Pydantic models for web API requests and responses.

Request models only check the payload shape; field rules (ranges, name
charset, distinct endpoints) are enforced by the domain so HTTP and bulk
import reject exactly the same routes.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from routekeeper.domain.deletion import DeletionPlan
from routekeeper.domain.models import (
    CoordinatesDraft,
    CursorPage,
    DependencyReport,
    LocationDraft,
    RelationDependency,
    Route,
    RouteDraft,
)


# --- Requests ---


class CoordinatesIn(BaseModel):
    x: Optional[float] = None
    y: float


class LocationIn(BaseModel):
    x: float
    y: float
    name: Optional[str] = None


class RouteRequest(BaseModel):
    """Route create/update payload.

    Attributes:
        name (str): Route name.
        coordinates (CoordinatesIn): Coordinates value, ``x`` optional.
        from_location (LocationIn): Start location, sent as ``from``.
        to_location (LocationIn): End location, sent as ``to``.
        distance (int): Declared distance.
        rating (int): Route rating.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    coordinates: CoordinatesIn
    from_location: LocationIn = Field(alias="from")
    to_location: LocationIn = Field(alias="to")
    distance: int
    rating: int

    def to_draft(self) -> RouteDraft:
        return RouteDraft(
            name=self.name,
            coordinates=CoordinatesDraft(x=self.coordinates.x, y=self.coordinates.y),
            from_location=LocationDraft(
                x=self.from_location.x, y=self.from_location.y, name=self.from_location.name
            ),
            to_location=LocationDraft(
                x=self.to_location.x, y=self.to_location.y, name=self.to_location.name
            ),
            distance=self.distance,
            rating=self.rating,
        )


class ImportRequest(BaseModel):
    """Bulk import payload: the raw CSV text of one file."""

    username: str = Field(..., min_length=1)
    filename: str = Field(..., min_length=1)
    content: str


# --- Responses ---


class CoordinatesOut(BaseModel):
    id: int
    x: Optional[float] = None
    y: float
    owner_route_id: Optional[int] = None


class LocationOut(BaseModel):
    id: int
    x: float
    y: float
    name: Optional[str] = None
    owner_route_id: Optional[int] = None


class RouteOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    coordinates: CoordinatesOut
    from_location: LocationOut = Field(alias="from")
    to_location: LocationOut = Field(alias="to")
    distance: int
    rating: int
    creation_date: datetime

    @classmethod
    def from_domain(cls, route: Route) -> "RouteOut":
        return cls.model_validate(route.to_dict())


class RoutePageOut(BaseModel):
    """Offset page of routes."""

    content: List[RouteOut]
    page: int
    size: int
    total_elements: int
    total_pages: int


class CursorPageOut(BaseModel):
    """Cursor page of routes.

    Attributes:
        next_cursor (Optional[str]): Token for ``nav=next``, set when has_next.
        prev_cursor (Optional[str]): Token for ``nav=prev``, set when has_prev.
        total_count (int): Matching routes at query time.
    """

    content: List[RouteOut]
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None
    has_next: bool
    has_prev: bool
    total_count: int
    size: int

    @classmethod
    def from_domain(cls, page: CursorPage) -> "CursorPageOut":
        return cls(
            content=[RouteOut.from_domain(route) for route in page.content],
            next_cursor=page.next_cursor,
            prev_cursor=page.prev_cursor,
            has_next=page.has_next,
            has_prev=page.has_prev,
            total_count=page.total_count,
            size=page.size,
        )


class RelationDependencyOut(BaseModel):
    relation: str
    object_id: int
    is_owner: bool
    usage_count: int
    needs_rebind: bool
    candidates: List[RouteOut]

    @classmethod
    def from_domain(cls, dependency: RelationDependency) -> "RelationDependencyOut":
        return cls(
            relation=dependency.relation.value,
            object_id=dependency.object_id,
            is_owner=dependency.is_owner,
            usage_count=dependency.usage_count,
            needs_rebind=dependency.needs_rebind,
            candidates=[RouteOut.from_domain(route) for route in dependency.candidates],
        )


class DependencyReportOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route_id: int
    coordinates: RelationDependencyOut
    from_location: RelationDependencyOut = Field(alias="from")
    to_location: RelationDependencyOut = Field(alias="to")
    needs_rebind: bool

    @classmethod
    def from_domain(cls, report: DependencyReport) -> "DependencyReportOut":
        return cls(
            route_id=report.route.id,
            coordinates=RelationDependencyOut.from_domain(report.coordinates),
            from_location=RelationDependencyOut.from_domain(report.from_location),
            to_location=RelationDependencyOut.from_domain(report.to_location),
            needs_rebind=report.needs_rebind,
        )


class RelationDecisionOut(BaseModel):
    relation: str
    object_id: int
    action: str
    target_route_id: Optional[int] = None


class DeletionResultOut(BaseModel):
    route_id: int
    decisions: List[RelationDecisionOut]

    @classmethod
    def from_domain(cls, plan: DeletionPlan) -> "DeletionResultOut":
        return cls(
            route_id=plan.route_id,
            decisions=[
                RelationDecisionOut(
                    relation=d.relation.value,
                    object_id=d.object_id,
                    action=d.action.value,
                    target_route_id=d.target_route_id,
                )
                for d in plan.decisions
            ],
        )


class CountOut(BaseModel):
    count: int


class ImportOperationOut(BaseModel):
    id: int
    username: str
    filename: str
    status: str
    start_time: datetime
    end_time: Optional[datetime] = None
    total_records: int
    processed_records: int
    successful_records: int
    failed_records: int
    errors: List[str]
    error_message: Optional[str] = None


class ImportStatsOut(BaseModel):
    total_operations: int
    successful_operations: int
    failed_operations: int


class HealthStatus(BaseModel):
    """Health status response.

    Attributes:
        status (str): ``healthy`` or ``degraded``.
        database (bool): Whether the database answered the ping.
        version (str): Application version.
    """

    status: str
    database: bool
    version: str
