"""
Marker API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from . import schemas, service
from .dependencies import get_store
from .repository import MarkerStore

router = APIRouter()

_ERROR_RESPONSES = {500: {"model": schemas.MarkerErrorResponse}}


@router.post(
    "/markers",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.MarkerResult,
    responses=_ERROR_RESPONSES,
)
async def create_marker(
    request: schemas.CreateMarkerRequest,
    store: MarkerStore = Depends(get_store),
) -> dict:
    return await service.create_marker(store, request)


@router.get(
    "/markers",
    response_model=list[schemas.Marker],
    responses=_ERROR_RESPONSES,
)
async def list_markers(store: MarkerStore = Depends(get_store)) -> list[dict]:
    """
    All markers, newest first.
    """
    return await service.list_markers(store)


@router.put(
    "/markers/{marker_id}",
    response_model=schemas.MarkerResult,
    responses=_ERROR_RESPONSES,
)
async def update_marker(
    marker_id: str,
    request: schemas.UpdateMarkerRequest,
    store: MarkerStore = Depends(get_store),
) -> dict:
    return await service.update_marker(store, marker_id, request)


@router.delete(
    "/markers/{marker_id}",
    response_model=schemas.MarkerResult,
    responses=_ERROR_RESPONSES,
)
async def delete_marker(
    marker_id: str,
    store: MarkerStore = Depends(get_store),
) -> dict:
    return await service.delete_marker(store, marker_id)
