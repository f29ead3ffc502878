"""
Route CRUD API endpoints.

Resource-oriented calls keyed by route id, listing with offset or cursor
pagination, the dependency check and the delete path with rebind
instructions.
"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from routekeeper.application.services.route_service import RouteService, get_route_service
from routekeeper.domain.models import Relation

from ..core.models import (
    CursorPageOut,
    DeletionResultOut,
    DependencyReportOut,
    RouteOut,
    RoutePageOut,
    RouteRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/routes", tags=["routes"])


@router.post("", response_model=RouteOut, status_code=201)
def create_route(
    payload: RouteRequest, service: RouteService = Depends(get_route_service)
):
    """Create a route, reusing existing shared values where equal."""
    route = service.create_route(payload.to_draft())
    return RouteOut.from_domain(route)


@router.get("", response_model=RoutePageOut)
def list_routes(
    name: Optional[str] = Query(None, description="Case-insensitive name substring"),
    sort_by: Optional[str] = Query(None, description="id, name, distance or rating"),
    direction: Optional[str] = Query(None, description="asc or desc"),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None),
    service: RouteService = Depends(get_route_service),
):
    """Offset page of routes."""
    size = size or service.settings.default_page_size
    routes, total = service.list_routes(
        page=page, size=size, name_filter=name, sort=sort_by, direction=direction
    )
    return RoutePageOut(
        content=[RouteOut.from_domain(route) for route in routes],
        page=page,
        size=size,
        total_elements=total,
        total_pages=math.ceil(total / size) if total else 0,
    )


@router.get("/cursor", response_model=CursorPageOut)
def cursor_page(
    name: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None),
    direction: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None, description="Token from a previous page"),
    size: Optional[int] = Query(None),
    nav: Optional[str] = Query(None, description="next or prev"),
    service: RouteService = Depends(get_route_service),
):
    """Cursor page of routes; stable under concurrent inserts and deletes."""
    page = service.cursor_page(
        name_filter=name, sort=sort_by, direction=direction, cursor=cursor, size=size, nav=nav
    )
    return CursorPageOut.from_domain(page)


@router.get("/{route_id}", response_model=RouteOut)
def get_route(route_id: int, service: RouteService = Depends(get_route_service)):
    return RouteOut.from_domain(service.get_route(route_id))


@router.put("/{route_id}", response_model=RouteOut)
def update_route(
    route_id: int, payload: RouteRequest, service: RouteService = Depends(get_route_service)
):
    """Replace a route's content; changed shared values are re-referenced."""
    return RouteOut.from_domain(service.update_route(route_id, payload.to_draft()))


@router.get("/{route_id}/dependencies", response_model=DependencyReportOut)
def route_dependencies(route_id: int, service: RouteService = Depends(get_route_service)):
    """Which other routes use this route's shared values, and who owns them."""
    return DependencyReportOut.from_domain(service.check_dependencies(route_id))


@router.delete("/{route_id}", response_model=DeletionResultOut)
def delete_route(
    route_id: int,
    coordinates_target_route_id: Optional[int] = Query(None),
    from_location_target_route_id: Optional[int] = Query(None),
    to_location_target_route_id: Optional[int] = Query(None),
    service: RouteService = Depends(get_route_service),
):
    """Delete a route.

    A route that owns a shared value still used elsewhere needs a target
    route, per relation, that takes over ownership.
    """
    plan = service.delete_route(
        route_id,
        {
            Relation.COORDINATES: coordinates_target_route_id,
            Relation.FROM: from_location_target_route_id,
            Relation.TO: to_location_target_route_id,
        },
    )
    return DeletionResultOut.from_domain(plan)
