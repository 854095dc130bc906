from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from main import app
from markers.dependencies import get_store
from markers.repository import StoreError


class InMemoryMarkerStore:
    """
    Same surface as `MarkerStore`, backed by a dict.
    Each create gets a strictly later `created` than the previous one.
    """

    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}
        self.fail_with: StoreError | None = None
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def create(self, marker: dict[str, Any]) -> str:
        self._maybe_fail()
        marker_id = marker["id"]
        if marker_id in self.rows:
            raise StoreError('duplicate key value violates unique constraint "video_markers_pkey"', code="23505")
        self._clock += timedelta(seconds=1)
        self.rows[marker_id] = {
            "id": marker_id,
            "title": marker.get("title"),
            "url": marker["url"],
            "seconds": marker["seconds"],
            "note": marker.get("note"),
            "created": self._clock,
        }
        return marker_id

    async def list_all(self) -> list[dict[str, Any]]:
        self._maybe_fail()
        return sorted(
            (dict(row) for row in self.rows.values()),
            key=lambda row: (row["created"], row["id"]),
            reverse=True,
        )

    async def get(self, marker_id: str) -> dict[str, Any] | None:
        self._maybe_fail()
        row = self.rows.get(marker_id)
        return dict(row) if row is not None else None

    async def update(self, marker_id: str, fields: dict[str, Any]) -> int:
        self._maybe_fail()
        row = self.rows.get(marker_id)
        if row is None:
            return 0
        row.update({key: fields.get(key) for key in ("title", "url", "seconds", "note")})
        return 1

    async def delete(self, marker_id: str) -> int:
        self._maybe_fail()
        return 1 if self.rows.pop(marker_id, None) is not None else 0


@pytest.fixture
def store() -> InMemoryMarkerStore:
    return InMemoryMarkerStore()


@pytest.fixture
def client(store: InMemoryMarkerStore):
    # No `with`: the lifespan (real Postgres bootstrap) is not run.
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
