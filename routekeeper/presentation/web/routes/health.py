"""
Health check endpoint.

Reports liveness of the web application together with a database ping.
"""

import logging
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Depends

from routekeeper.application.services.route_service import RouteService, get_route_service

from ..core.models import HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


def get_version() -> str:
    """Installed package version, ``v0.0.0`` when running from a source tree."""
    try:
        return f"v{version('routekeeper')}"
    except PackageNotFoundError:
        return "v0.0.0"


@router.get("/", response_model=HealthStatus)
def health_check(service: RouteService = Depends(get_route_service)):
    """Basic health check.

    Always answers; a failing database makes the status ``degraded``.
    """
    result = service.health()
    return HealthStatus(status=result["status"], database=result["database"], version=get_version())
