"""
RouteKeeper Presentation Layer.

Interface Components:
    - Web: FastAPI JSON API (presentation.web)
    - CLI: Typer commands (presentation.cli)

Both go through RouteService; neither touches the store directly.
"""
