"""
RouteKeeper - Persistent route storage with shared values.

Routes reference Coordinates and Location values that are stored once and
shared between every route that uses an equal value. Each shared value has
exactly one owning route; deleting an owner that still has dependents
requires rebinding ownership to one of them.

Architecture:
    - Domain Layer: entities, validation rules, cursors, deletion planning
    - Application Layer: RouteService and the bulk import pipeline
    - Infrastructure Layer: SQLAlchemy route store, settings, logging
    - Presentation Layer: FastAPI web API and Typer CLI

Example:
    Basic usage for programmatic access::

        from routekeeper.application.services.route_service import get_route_service

        service = get_route_service()
        route = service.create_route({...})
"""

__version__ = "1.0.0"
