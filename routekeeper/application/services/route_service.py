"""
RouteService - Application entry point to the route storage engine.

Provides the application-wide route service with a global singleton and
FastAPI lifecycle integration. Web handlers, CLI commands and scripts go
through this service rather than the store.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from fastapi import FastAPI

from routekeeper.domain.deletion import DeletionPlan, RebindTargets
from routekeeper.domain.errors import ValidationError
from routekeeper.domain.models import (
    Coordinates,
    CursorPage,
    DependencyReport,
    Location,
    Route,
    RouteDraft,
)
from routekeeper.infrastructure.persistence.route_store import RouteStore
from routekeeper.infrastructure.settings import Settings, get_settings

from .import_service import ImportService

# Global state
_global_route_service: Optional["RouteService"] = None

logger = logging.getLogger(__name__)

DraftInput = Union[RouteDraft, Mapping[str, Any]]


def as_route_draft(data: DraftInput) -> RouteDraft:
    """Accept a RouteDraft or its nested dictionary form."""
    if isinstance(data, RouteDraft):
        return data
    try:
        return RouteDraft.from_dict(dict(data))
    except (KeyError, TypeError, AttributeError) as e:
        raise ValidationError(f"Malformed route payload: missing or invalid {e}") from None


class RouteService:
    """
    Route operations for callers.

    Attributes:
        store: Underlying RouteStore
        settings: Settings the service was built with
        imports: Bulk import pipeline bound to the same store
    """

    def __init__(self, store: RouteStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or Settings(database_url=store.database_url)
        self.imports = ImportService(store)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RouteService":
        store = RouteStore(settings.database_url, max_page_size=settings.max_page_size)
        return cls(store, settings)

    # Routes

    def create_route(self, data: DraftInput) -> Route:
        return self.store.route_create(as_route_draft(data))

    def get_route(self, route_id: int) -> Route:
        return self.store.route_get(route_id)

    def update_route(self, route_id: int, data: DraftInput) -> Route:
        return self.store.route_update(route_id, as_route_draft(data))

    def delete_route(
        self, route_id: int, rebind_targets: Optional[RebindTargets] = None
    ) -> DeletionPlan:
        """Delete a route; see RouteStore.route_delete for the rebind rules."""
        return self.store.route_delete(route_id, rebind_targets)

    def check_dependencies(self, route_id: int) -> DependencyReport:
        return self.store.route_check_dependencies(route_id)

    def list_routes(
        self,
        page: int = 0,
        size: Optional[int] = None,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> Tuple[List[Route], int]:
        return self.store.route_find_paginated(
            page=page,
            size=size or self.settings.default_page_size,
            name_filter=name_filter,
            sort=sort,
            direction=direction,
        )

    def list_all_routes(
        self,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> List[Route]:
        return self.store.route_list_filtered(name_filter, sort, direction)

    def cursor_page(
        self,
        name_filter: Optional[str] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
        cursor: Optional[str] = None,
        size: Optional[int] = None,
        nav: Optional[str] = None,
    ) -> CursorPage:
        return self.store.route_page(
            name_filter=name_filter,
            sort=sort,
            direction=direction,
            cursor=cursor,
            page_size=size or self.settings.default_page_size,
            nav=nav,
        )

    # Special queries

    def route_with_max_name(self) -> Route:
        return self.store.route_with_max_name()

    def count_rating_less_than(self, threshold: int) -> int:
        return self.store.route_count_rating_less_than(threshold)

    def routes_rating_greater_than(self, threshold: int) -> List[Route]:
        return self.store.route_list_rating_greater_than(threshold)

    def routes_between(
        self, from_spec: str, to_spec: str, sort_by: Optional[str] = None
    ) -> List[Route]:
        return self.store.route_list_between(from_spec, to_spec, sort_by)

    # Shared values

    def get_coordinates(self, coordinates_id: int) -> Coordinates:
        return self.store.coordinates_get(coordinates_id)

    def get_location(self, location_id: int) -> Location:
        return self.store.location_get(location_id)

    def available_coordinates(self) -> List[Coordinates]:
        return self.store.available_coordinates()

    def available_locations(self) -> List[Location]:
        return self.store.available_locations()

    def available_from_locations(self) -> List[Location]:
        return self.store.available_from_locations()

    def available_to_locations(self) -> List[Location]:
        return self.store.available_to_locations()

    def available_location_names(self) -> List[str]:
        return self.store.available_location_names()

    def health(self) -> Dict[str, Any]:
        """Liveness information including a database ping."""
        try:
            database_ok = self.store.ping()
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            database_ok = False
        return {"status": "healthy" if database_ok else "degraded", "database": database_ok}

    def close(self) -> None:
        self.store.close()


def get_route_service() -> RouteService:
    """
    Get the global RouteService instance.

    Note:
        Auto-initializes from settings if not already done.
    """
    if _global_route_service is None:
        return initialize_route_service()
    return _global_route_service


def initialize_route_service(settings: Optional[Settings] = None) -> RouteService:
    """
    Initialize the global RouteService.

    Args:
        settings: Settings to use, defaults to get_settings()

    Raises:
        RuntimeError: If the store cannot be opened
    """
    global _global_route_service

    if _global_route_service is not None:
        logger.info("RouteService already initialized")
        return _global_route_service

    settings = settings or get_settings()
    try:
        _global_route_service = RouteService.from_settings(settings)
    except Exception as e:
        logger.error(f"Failed to initialize RouteService: {e}")
        raise RuntimeError(f"RouteService initialization failed: {e}") from e

    logger.info("RouteService initialized")
    return _global_route_service


def set_route_service(service: Optional[RouteService]) -> None:
    """Replace the global service (used by tests)."""
    global _global_route_service
    _global_route_service = service


def cleanup_route_service() -> None:
    """Close the global RouteService and reset global state."""
    global _global_route_service

    if _global_route_service is not None:
        _global_route_service.close()
        logger.info("RouteService closed")
    _global_route_service = None


@asynccontextmanager
async def route_service_lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for RouteService.

    Args:
        app: FastAPI application instance
    """
    logger.info("Starting RouteService lifecycle")
    get_route_service()
    try:
        yield
    finally:
        cleanup_route_service()
        logger.info("RouteService lifecycle finished")
