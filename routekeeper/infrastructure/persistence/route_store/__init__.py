"""
Route store persistence module.

SQLAlchemy-backed storage engine for routes and their shared values.

Key Components:
    - Value store with content-addressed, deduplicated Coordinates/Locations
    - Ownership tracker keeping one owner per shared object
    - Route repository with cursor and offset pagination
    - Deletion resolver that re-homes owned objects before deleting a route
    - Import operation audit trail

Usage Example:
    ```python
    from routekeeper.infrastructure.persistence.route_store import RouteStore

    store = RouteStore("sqlite:///routes.db")
    route = store.route_create(draft)
    page = store.route_page(sort="name", page_size=20)
    ```
"""

from .core import RouteStore

__all__ = ["RouteStore"]
