"""
Marker dependencies for FastAPI routes.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from .repository import MarkerStore


def get_store(request: Request) -> MarkerStore:
    store = getattr(request.app.state, "marker_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Marker store is not initialized.",
        )
    return store
