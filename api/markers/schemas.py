"""
Pydantic schemas for marker endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MarkerFields(BaseModel):
    title: str | None = Field(default=None, max_length=255)
    url: str = Field(..., min_length=1, max_length=1024)
    seconds: int = Field(..., ge=0)
    note: str | None = None


class CreateMarkerRequest(MarkerFields):
    id: str = Field(..., min_length=1, max_length=36)


class UpdateMarkerRequest(MarkerFields):
    """
    Replacement values for a marker. `id` and `created` are never updated.
    """


class Marker(BaseModel):
    id: str
    title: str | None = None
    url: str
    seconds: int
    note: str | None = None
    created: datetime


class MarkerResult(BaseModel):
    message: str
    id: str


class MarkerErrorResponse(BaseModel):
    message: str
    error: str
