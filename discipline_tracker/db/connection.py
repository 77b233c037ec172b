from __future__ import annotations

import os
from typing import Any

import psycopg2

from ..models.config_models import DatabaseConfig

"""Remote store connection handling.

Connection parameters resolve in this order:
    1. ``DATABASE_URL`` / ``PGDSN`` (whole DSN)
    2. ``PGHOST`` / ``PGPORT`` / ``PGUSER`` / ``PGPASSWORD`` / ``PGDATABASE``
    3. the ``database`` section of the YAML config
"""

__all__ = [
    "resolve_dsn",
    "connect",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def connect(db_cfg: DatabaseConfig, connect_timeout: int = 5) -> Any:
    """Open a psycopg2 connection with explicit transaction control."""
    conn = psycopg2.connect(resolve_dsn(db_cfg), connect_timeout=connect_timeout)
    conn.autocommit = False
    return conn
