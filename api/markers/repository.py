"""
Marker persistence (raw SQL).

Every call checks out one pooled connection for its duration; the pool hands
it back on success and on failure. Database errors surface as `StoreError`.
"""

from __future__ import annotations

import asyncio
from typing import Any

import asyncpg

from core.db import Database, affected_rows
from core.schema import MARKERS_TABLE

MARKER_COLUMNS = "id, title, url, seconds, note, created"


class StoreError(RuntimeError):
    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


def _store_error(exc: BaseException) -> StoreError:
    return StoreError(str(exc) or exc.__class__.__name__, code=getattr(exc, "sqlstate", None))


# asyncpg raises PostgresError for server-side failures, InterfaceError for
# client-side misuse, OSError subclasses when the server is unreachable and
# asyncio.TimeoutError when `command_timeout` expires.
_DB_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


class MarkerStore:
    def __init__(self, database: Database) -> None:
        self._db = database

    async def create(self, marker: dict[str, Any]) -> str:
        try:
            await self._db.execute(
                f"""
                INSERT INTO {MARKERS_TABLE} (id, title, url, seconds, note)
                VALUES ($1, $2, $3, $4, $5)
                """,
                marker.get("id"),
                marker.get("title"),
                marker.get("url"),
                marker.get("seconds"),
                marker.get("note"),
            )
        except _DB_ERRORS as exc:
            raise _store_error(exc) from exc
        return str(marker.get("id"))

    async def list_all(self) -> list[dict[str, Any]]:
        """
        All markers, most recently created first.
        """
        try:
            return await self._db.fetch_all(
                f"""
                SELECT {MARKER_COLUMNS}
                FROM {MARKERS_TABLE}
                ORDER BY created DESC, id DESC
                """
            )
        except _DB_ERRORS as exc:
            raise _store_error(exc) from exc

    async def get(self, marker_id: str) -> dict[str, Any] | None:
        try:
            return await self._db.fetch_one(
                f"""
                SELECT {MARKER_COLUMNS}
                FROM {MARKERS_TABLE}
                WHERE id = $1
                """,
                marker_id,
            )
        except _DB_ERRORS as exc:
            raise _store_error(exc) from exc

    async def update(self, marker_id: str, fields: dict[str, Any]) -> int:
        """
        Replace title/url/seconds/note. Returns the number of rows touched;
        0 means no marker has that id, which is not an error here.
        """
        try:
            status = await self._db.execute(
                f"""
                UPDATE {MARKERS_TABLE}
                SET title = $1,
                    url = $2,
                    seconds = $3,
                    note = $4
                WHERE id = $5
                """,
                fields.get("title"),
                fields.get("url"),
                fields.get("seconds"),
                fields.get("note"),
                marker_id,
            )
        except _DB_ERRORS as exc:
            raise _store_error(exc) from exc
        return affected_rows(status)

    async def delete(self, marker_id: str) -> int:
        try:
            status = await self._db.execute(
                f"DELETE FROM {MARKERS_TABLE} WHERE id = $1",
                marker_id,
            )
        except _DB_ERRORS as exc:
            raise _store_error(exc) from exc
        return affected_rows(status)
