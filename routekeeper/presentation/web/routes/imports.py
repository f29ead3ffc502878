"""
Bulk import API endpoints.

An import call always returns the finalized ImportOperation: SUCCESS when
every record was committed, FAILED with per-line errors otherwise.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from routekeeper.application.services.route_service import RouteService, get_route_service

from ..core.models import ImportOperationOut, ImportRequest, ImportStatsOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/imports", tags=["imports"])


@router.post("", response_model=ImportOperationOut, status_code=201)
def import_routes(
    payload: ImportRequest, service: RouteService = Depends(get_route_service)
):
    """Import routes from CSV text, all or nothing."""
    operation = service.imports.import_routes(payload.username, payload.filename, payload.content)
    return ImportOperationOut(**operation.to_dict())


@router.get("/history", response_model=List[ImportOperationOut])
def import_history(
    username: str = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    service: RouteService = Depends(get_route_service),
):
    """A user's import operations, newest first."""
    return [
        ImportOperationOut(**op.to_dict())
        for op in service.imports.history(username, page, size)
    ]


@router.get("/stats", response_model=ImportStatsOut)
def import_stats(
    username: str = Query(...), service: RouteService = Depends(get_route_service)
):
    return ImportStatsOut(**service.imports.stats(username).to_dict())


@router.get("/{operation_id}", response_model=ImportOperationOut)
def import_operation_detail(
    operation_id: int, service: RouteService = Depends(get_route_service)
):
    return ImportOperationOut(**service.imports.operation_detail(operation_id).to_dict())
