"""
Environment-driven settings.

Values come from the process environment. The nearest `.env` file (searched
upwards from this package) is loaded first without overriding anything
already set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv

from .db import DEFAULT_POOL_SIZE

DEFAULT_SERVER_PORT = 3011


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = ""
    db_name: str = "video_markers"
    db_admin_name: str = "postgres"
    db_pool_size: int = DEFAULT_POOL_SIZE
    server_host: str = "0.0.0.0"
    server_port: int = DEFAULT_SERVER_PORT
    log_level: str = "INFO"

    def connect_kwargs(self, *, database: str | None = None) -> dict[str, Any]:
        """
        Keyword arguments for `asyncpg.connect` / `asyncpg.create_pool`.
        """
        return {
            "host": self.db_host,
            "port": self.db_port,
            "user": self.db_user,
            "password": self.db_password or None,
            "database": database or self.db_name,
        }


def load_settings() -> Settings:
    load_dotenv(override=False)
    pool_size = _env_int("DB_POOL_SIZE", DEFAULT_POOL_SIZE)
    if pool_size <= 0:
        pool_size = DEFAULT_POOL_SIZE
    return Settings(
        db_host=_env_str("DB_HOST", "localhost"),
        db_port=_env_int("DB_PORT", 5432),
        db_user=_env_str("DB_USER", "postgres"),
        db_password=os.environ.get("DB_PASSWORD", ""),
        db_name=_env_str("DB_NAME", "video_markers"),
        db_admin_name=_env_str("DB_ADMIN_NAME", "postgres"),
        db_pool_size=pool_size,
        server_host=_env_str("SERVER_HOST", "0.0.0.0"),
        server_port=_env_int("SERVER_PORT", DEFAULT_SERVER_PORT),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
