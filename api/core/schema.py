"""
Schema bootstrap.

Runs once per process before the API accepts requests:
1. create the target database if it is missing (via the maintenance DB)
2. create the `video_markers` table if it is missing

Both steps are idempotent. Any failure is logged and raised as `SchemaError`,
which aborts application startup.
"""

from __future__ import annotations

import logging

import asyncpg

from .db import Database
from .settings import Settings

logger = logging.getLogger(__name__)

MARKERS_TABLE = "video_markers"

CREATE_MARKERS_TABLE = f"""
CREATE TABLE IF NOT EXISTS {MARKERS_TABLE} (
    id VARCHAR(36) PRIMARY KEY,
    title VARCHAR(255),
    url VARCHAR(1024) NOT NULL,
    seconds INTEGER NOT NULL,
    note TEXT,
    created TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

CREATE_MARKERS_CREATED_INDEX = f"""
CREATE INDEX IF NOT EXISTS {MARKERS_TABLE}_created_idx
ON {MARKERS_TABLE} (created DESC)
"""


class SchemaError(RuntimeError):
    pass


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def error_details(exc: BaseException) -> dict[str, str | None]:
    """
    Pull the diagnostic fields Postgres attaches to server errors.
    Non-server errors only contribute their message.
    """
    details: dict[str, str | None] = {"message": str(exc) or exc.__class__.__name__}
    for field in ("sqlstate", "detail", "hint", "schema_name", "table_name", "constraint_name"):
        details[field] = getattr(exc, field, None)
    return details


async def ensure_database(settings: Settings) -> bool:
    """
    Create `settings.db_name` unless it already exists.
    Returns True when the database was created by this call.
    """
    conn = await asyncpg.connect(**settings.connect_kwargs(database=settings.db_admin_name))
    try:
        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1",
            settings.db_name,
        )
        if exists:
            return False
        try:
            # CREATE DATABASE does not accept bind parameters.
            await conn.execute(f"CREATE DATABASE {quote_ident(settings.db_name)}")
        except asyncpg.DuplicateDatabaseError:
            # Another process won the race.
            return False
        logger.info("database_created name=%s", settings.db_name)
        return True
    finally:
        await conn.close()


async def ensure_tables(database: Database) -> None:
    async with database.acquire() as conn:
        await conn.execute(CREATE_MARKERS_TABLE)
        await conn.execute(CREATE_MARKERS_CREATED_INDEX)


async def initialize(settings: Settings, database: Database) -> None:
    """
    Ensure database + table exist and leave `database` open.
    """
    try:
        await ensure_database(settings)
        await database.open()
        await ensure_tables(database)
    except Exception as exc:
        details = error_details(exc)
        logger.error(
            "schema_init_failed message=%s code=%s detail=%s hint=%s schema=%s table=%s constraint=%s",
            details["message"],
            details["sqlstate"],
            details["detail"],
            details["hint"],
            details["schema_name"],
            details["table_name"],
            details["constraint_name"],
        )
        await database.close()
        raise SchemaError(f"Schema initialization failed: {details['message']}") from exc
    logger.info("schema_ready database=%s table=%s", settings.db_name, MARKERS_TABLE)
