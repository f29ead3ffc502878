"""
Web Presentation Layer - FastAPI-based HTTP interface for RouteKeeper.

Key Components:
    - FastAPI Application: app.py
    - Route Handlers: routes/ (one router per functional area)
    - Models: core/models.py (Pydantic request and response models)
    - Error Mapping: errors.py (domain errors to HTTP status codes)
"""
