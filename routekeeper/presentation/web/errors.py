"""Mapping of domain errors to HTTP responses.

Every RouteKeeperError becomes a JSON body of the form
``{"error": <class name>, "message": <text>, **details}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from routekeeper.domain.errors import (
    DuplicateNameError,
    ImportAbortedError,
    InvalidArgumentError,
    InvalidRebindTargetError,
    MissingRebindTargetError,
    NotFoundError,
    RouteKeeperError,
    ValidationError,
    ZeroDistanceRouteError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationError: 400,
    InvalidArgumentError: 400,
    NotFoundError: 404,
    DuplicateNameError: 409,
    MissingRebindTargetError: 409,
    InvalidRebindTargetError: 409,
    ZeroDistanceRouteError: 422,
    ImportAbortedError: 422,
}


def status_code_for(exc: RouteKeeperError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def error_body(exc: RouteKeeperError) -> dict:
    return {"error": type(exc).__name__, "message": str(exc), **exc.details()}


async def routekeeper_error_handler(request: Request, exc: RouteKeeperError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code} {type(exc).__name__}")
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed payloads and parameters like domain validation errors."""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append(f"{location}: {error.get('msg')}")
    return JSONResponse(
        status_code=400,
        content={"error": "ValidationError", "message": "Invalid request", "errors": errors},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RouteKeeperError, routekeeper_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
