"""
RouteKeeper Infrastructure Layer

Persistence (SQLAlchemy route store), settings and logging.
"""

from .persistence.route_store import RouteStore

__all__ = ["RouteStore"]
