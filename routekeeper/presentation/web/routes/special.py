"""
Read-only route queries and in-use value listings.

These endpoints share the ``/api/routes`` prefix and are registered before
the id-keyed route endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from routekeeper.application.services.route_service import RouteService, get_route_service

from ..core.models import CoordinatesOut, CountOut, LocationOut, RouteOut

router = APIRouter(prefix="/api/routes", tags=["special"])


@router.get("/special/max-name", response_model=RouteOut)
def route_with_max_name(service: RouteService = Depends(get_route_service)):
    """Route with the lexicographically greatest name; 404 when there are none."""
    return RouteOut.from_domain(service.route_with_max_name())


@router.get("/special/rating-less-count", response_model=CountOut)
def rating_less_count(
    threshold: int = Query(...), service: RouteService = Depends(get_route_service)
):
    return CountOut(count=service.count_rating_less_than(threshold))


@router.get("/special/rating-greater", response_model=List[RouteOut])
def rating_greater(
    threshold: int = Query(...), service: RouteService = Depends(get_route_service)
):
    return [RouteOut.from_domain(r) for r in service.routes_rating_greater_than(threshold)]


@router.get("/special/between", response_model=List[RouteOut])
def routes_between(
    from_name: str = Query(..., description='Location name or "(x, y)"'),
    to_name: str = Query(..., description='Location name or "(x, y)"'),
    sort_by: Optional[str] = Query(None, description="name, distance, rating or creation_date"),
    service: RouteService = Depends(get_route_service),
):
    """Routes from one endpoint to the other (not the reverse)."""
    return [
        RouteOut.from_domain(r) for r in service.routes_between(from_name, to_name, sort_by)
    ]


@router.get("/values/coordinates", response_model=List[CoordinatesOut])
def values_coordinates(service: RouteService = Depends(get_route_service)):
    return [CoordinatesOut(**c.to_dict()) for c in service.available_coordinates()]


@router.get("/values/locations", response_model=List[LocationOut])
def values_locations(service: RouteService = Depends(get_route_service)):
    return [LocationOut(**loc.to_dict()) for loc in service.available_locations()]


@router.get("/values/locations/from", response_model=List[LocationOut])
def values_from_locations(service: RouteService = Depends(get_route_service)):
    return [LocationOut(**loc.to_dict()) for loc in service.available_from_locations()]


@router.get("/values/locations/to", response_model=List[LocationOut])
def values_to_locations(service: RouteService = Depends(get_route_service)):
    return [LocationOut(**loc.to_dict()) for loc in service.available_to_locations()]


@router.get("/values/location-names", response_model=List[str])
def values_location_names(service: RouteService = Depends(get_route_service)):
    return service.available_location_names()


@router.get("/values/coordinates/{coordinates_id}", response_model=CoordinatesOut)
def coordinates_detail(
    coordinates_id: int, service: RouteService = Depends(get_route_service)
):
    """Stored coordinates; 404 once no route references them."""
    return CoordinatesOut(**service.get_coordinates(coordinates_id).to_dict())


@router.get("/values/locations/{location_id}", response_model=LocationOut)
def location_detail(location_id: int, service: RouteService = Depends(get_route_service)):
    return LocationOut(**service.get_location(location_id).to_dict())
