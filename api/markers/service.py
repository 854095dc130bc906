"""
Marker business logic.

Thin on purpose: normalizes optional text fields, calls the store and turns
`StoreError` into `MarkerOperationError` (rendered as HTTP 500 by `main.py`).
"""

from __future__ import annotations

import logging
from typing import Any

from . import schemas
from .repository import MarkerStore, StoreError

logger = logging.getLogger(__name__)


class MarkerOperationError(RuntimeError):
    def __init__(self, message: str, error: str) -> None:
        super().__init__(f"{message}: {error}")
        self.message = message
        self.error = error


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


def _fields(request: schemas.MarkerFields) -> dict[str, Any]:
    return {
        "title": _blank_to_none(request.title),
        "url": request.url,
        "seconds": int(request.seconds),
        "note": _blank_to_none(request.note),
    }


async def create_marker(store: MarkerStore, request: schemas.CreateMarkerRequest) -> dict:
    try:
        marker_id = await store.create({"id": request.id, **_fields(request)})
    except StoreError as exc:
        logger.exception("marker_create_failed id=%s code=%s", request.id, exc.code)
        raise MarkerOperationError("Error creating marker", str(exc)) from exc
    logger.info("marker_created id=%s", marker_id)
    return {"message": "Marker created successfully", "id": marker_id}


async def list_markers(store: MarkerStore) -> list[dict[str, Any]]:
    try:
        return await store.list_all()
    except StoreError as exc:
        logger.exception("marker_list_failed code=%s", exc.code)
        raise MarkerOperationError("Error fetching markers", str(exc)) from exc


async def update_marker(
    store: MarkerStore,
    marker_id: str,
    request: schemas.UpdateMarkerRequest,
) -> dict:
    try:
        updated = await store.update(marker_id, _fields(request))
    except StoreError as exc:
        logger.exception("marker_update_failed id=%s code=%s", marker_id, exc.code)
        raise MarkerOperationError("Error updating marker", str(exc)) from exc
    if not updated:
        # Unknown ids still succeed; the caller gets the same response shape.
        logger.info("marker_update_noop id=%s", marker_id)
    return {"message": "Marker updated successfully", "id": marker_id}


async def delete_marker(store: MarkerStore, marker_id: str) -> dict:
    try:
        deleted = await store.delete(marker_id)
    except StoreError as exc:
        logger.exception("marker_delete_failed id=%s code=%s", marker_id, exc.code)
        raise MarkerOperationError("Error deleting marker", str(exc)) from exc
    if not deleted:
        logger.info("marker_delete_noop id=%s", marker_id)
    return {"message": "Marker deleted successfully", "id": marker_id}


_INVALID_BODY_MESSAGES = {
    "POST": "Error creating marker",
    "PUT": "Error updating marker",
}


def invalid_body_error(method: str, errors: list[dict[str, Any]]) -> MarkerOperationError | None:
    """
    Build the 500 payload for a marker body that failed validation.

    Returns None for methods that take no body; those keep FastAPI's default
    validation response.
    """
    message = _INVALID_BODY_MESSAGES.get(method.upper())
    if message is None:
        return None
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return MarkerOperationError(message, "; ".join(parts) or "Invalid request body")
