"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns one connection pool. It is constructed explicitly and handed to
whoever needs it; FastAPI opens it on startup and closes it on shutdown (see
`api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg

DEFAULT_POOL_SIZE = 5


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def affected_rows(status: str) -> int:
    """
    Parse the row count out of a command status tag ("UPDATE 1", "DELETE 0",
    "INSERT 0 1"). Returns 0 when the tag carries no count.
    """
    last = (status or "").rsplit(" ", 1)[-1]
    try:
        return int(last)
    except ValueError:
        return 0


class Database:
    """
    Handle around a bounded asyncpg pool.

    Callers beyond `max_size` wait inside `acquire()` until a connection is
    released; no queue limit or acquire timeout is configured.
    """

    def __init__(
        self,
        connect_kwargs: dict[str, Any],
        *,
        min_size: int = 1,
        max_size: int = DEFAULT_POOL_SIZE,
        command_timeout: float = 30,
    ) -> None:
        self._connect_kwargs = dict(connect_kwargs)
        self._min_size = min(min_size, max_size)
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool: asyncpg.Pool | None = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def open(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            **self._connect_kwargs,
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=self._command_timeout,
        )

    async def close(self) -> None:
        """
        Drain the pool: waits for checked-out connections to be released.
        """
        if self._pool is None:
            return None
        pool, self._pool = self._pool, None
        await pool.close()

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call open() on startup.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        # pool.acquire() releases the connection on every exit path.
        async with self.pool().acquire() as conn:
            yield conn

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        async with self.acquire() as conn:
            row = await conn.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        async with self.acquire() as conn:
            rows = await conn.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return its status tag.
        """
        async with self.acquire() as conn:
            return await conn.execute(sql, *args)
