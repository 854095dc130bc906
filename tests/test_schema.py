import asyncio
import logging

import asyncpg
import pytest

from core import schema
from core.db import Database
from core.settings import Settings
from fakes import FakeConnection, FakePool


@pytest.fixture
def settings():
    return Settings(db_host="db", db_user="app", db_name="markers", db_admin_name="postgres")


def patch_connect(monkeypatch, conn, captured=None):
    async def fake_connect(**kwargs):
        if captured is not None:
            captured.update(kwargs)
        return conn

    monkeypatch.setattr(asyncpg, "connect", fake_connect)


def patch_pool(monkeypatch, pool):
    async def fake_create_pool(**kwargs):
        return pool

    monkeypatch.setattr(asyncpg, "create_pool", fake_create_pool)


def test_ensure_database_creates_missing_database(monkeypatch, settings):
    conn = FakeConnection(status="CREATE DATABASE")
    captured = {}
    patch_connect(monkeypatch, conn, captured)

    created = asyncio.run(schema.ensure_database(settings))

    assert created is True
    assert captured["database"] == "postgres"
    assert conn.calls[0][2] == ("markers",)
    assert conn.calls[1][1] == 'CREATE DATABASE "markers"'
    assert conn.closed


def test_ensure_database_skips_existing_database(monkeypatch, settings):
    conn = FakeConnection()
    conn.value = 1
    patch_connect(monkeypatch, conn)

    assert asyncio.run(schema.ensure_database(settings)) is False
    assert [call[0] for call in conn.calls] == ["fetchval"]
    assert conn.closed


def test_quote_ident_escapes_quotes():
    assert schema.quote_ident('we"ird') == '"we""ird"'


def test_initialize_creates_table_and_leaves_pool_open(monkeypatch, settings):
    admin = FakeConnection()
    admin.value = 1
    patch_connect(monkeypatch, admin)
    table_conn = FakeConnection(status="CREATE TABLE")
    patch_pool(monkeypatch, FakePool(table_conn))
    database = Database(settings.connect_kwargs())

    asyncio.run(schema.initialize(settings, database))

    statements = [call[1] for call in table_conn.calls]
    assert "CREATE TABLE IF NOT EXISTS video_markers" in statements[0]
    assert "url VARCHAR(1024) NOT NULL" in statements[0]
    assert "created TIMESTAMPTZ NOT NULL DEFAULT now()" in statements[0]
    assert "CREATE INDEX IF NOT EXISTS" in statements[1]
    assert database.is_open


def test_initialize_failure_logs_and_raises_schema_error(monkeypatch, settings, caplog):
    admin = FakeConnection()
    admin.value = 1
    patch_connect(monkeypatch, admin)
    error = asyncpg.InsufficientPrivilegeError("permission denied for schema public")
    pool = FakePool(FakeConnection(error=error))
    patch_pool(monkeypatch, pool)
    database = Database(settings.connect_kwargs())

    with caplog.at_level(logging.ERROR, logger="core.schema"):
        with pytest.raises(schema.SchemaError) as excinfo:
            asyncio.run(schema.initialize(settings, database))

    assert excinfo.value.__cause__ is error
    assert not database.is_open
    assert pool.closed
    message = caplog.records[-1].getMessage()
    assert "schema_init_failed" in message
    assert "permission denied for schema public" in message
    assert "code=42501" in message


def test_initialize_fails_when_server_unreachable(monkeypatch, settings):
    async def refuse(**kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(asyncpg, "connect", refuse)

    with pytest.raises(schema.SchemaError):
        asyncio.run(schema.initialize(settings, Database(settings.connect_kwargs())))
