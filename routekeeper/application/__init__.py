"""
RouteKeeper Application Layer.

Use cases that sit between the presentation layer (CLI/Web) and the
domain and infrastructure layers.

Key Components:
    - RouteService: route operations and the global service lifecycle
    - ImportService: all-or-nothing CSV bulk import with audit records
"""

__all__: list[str] = []
