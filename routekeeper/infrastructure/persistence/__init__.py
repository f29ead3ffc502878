"""Persistence adapters."""

from .route_store import RouteStore

__all__ = ["RouteStore"]
