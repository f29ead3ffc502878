"""FastAPI Web Application for RouteKeeper.

Builds the FastAPI application: middleware, domain error handlers, routers
and the RouteService lifecycle.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routekeeper.application.services.route_service import route_service_lifespan

from .errors import register_error_handlers
from .routes import health, imports, routes, special

logger = logging.getLogger(__name__)


@asynccontextmanager
async def combined_lifespan(app):  # pragma: no cover - framework integration
    """Application lifecycle: open the RouteService on startup, close it on shutdown."""
    async with route_service_lifespan(app):
        logger.info("Web application lifecycle initialized")
        yield
        logger.info("Web application lifecycle completed")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="RouteKeeper",
        description="Route storage with shared values, ownership tracking and bulk import",
        version="1.0.0",
        lifespan=combined_lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    register_error_handlers(application)

    # Static paths under /api/routes go before the id-keyed endpoints
    application.include_router(special.router)
    application.include_router(routes.router)
    application.include_router(imports.router)
    application.include_router(health.router)
    return application


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    from routekeeper.infrastructure.settings import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.web_host, port=settings.web_port, log_level="info")
