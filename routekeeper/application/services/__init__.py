"""
Application Services Module.

Services:
    RouteService: Route CRUD, listing, special queries and deletion
    ImportService: Bulk import pipeline and import history

Note:
    Uses PEP 562 lazy import so domain-only tests do not pull in FastAPI
    and SQLAlchemy.
"""

__all__: list[str] = ["RouteService", "ImportService"]


def __getattr__(name):
    if name == "RouteService":
        from .route_service import RouteService

        return RouteService
    if name == "ImportService":
        from .import_service import ImportService

        return ImportService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
