from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.extensions

from ..config.loader import DatabaseConfig
from ..errors import DatabaseConnectionError

"""Database connection ownership.

One psycopg2 connection is opened per run and shared by the lock manager and
every lookup / procedure call; nothing else opens its own connection.

DSN resolution order:
    1. DATABASE_URL / PGDSN environment variables (after .env is loaded)
    2. database.dsn from the configuration
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
       the database.* parts of the configuration
"""

__all__ = [
    "Database",
    "mask_dsn",
    "resolve_dsn",
    "savepoint",
]

logger = logging.getLogger(__name__)

_KV_PASSWORD = re.compile(r"(password\s*=\s*)(\S+)", re.IGNORECASE)
_URL_PASSWORD = re.compile(r"(://[^:/@]+:)([^@]+)(@)")


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


def mask_dsn(dsn: str) -> str:
    """Hide the password part of a key=value or URL style DSN for logging."""
    masked = _KV_PASSWORD.sub(r"\1****", dsn)
    return _URL_PASSWORD.sub(r"\1****\3", masked)


class Database:
    """Owns the run's single connection (opened lazily, SERIALIZABLE, autocommit off)."""

    def __init__(self, dsn: str, connect: Callable[..., Any] | None = None) -> None:
        self.dsn = dsn
        self._connect = connect or psycopg2.connect
        self._connection: Any = None

    @property
    def connection(self) -> Any:
        if self._connection is None:
            self.open()
        return self._connection

    def open(self) -> None:
        try:
            conn = self._connect(self.dsn)
            conn.set_session(
                isolation_level=psycopg2.extensions.ISOLATION_LEVEL_SERIALIZABLE,
                autocommit=False,
            )
        except psycopg2.Error as e:
            logger.critical(f"Error connecting to database {mask_dsn(self.dsn)}: {e}")
            raise DatabaseConnectionError(str(e)) from e
        self._connection = conn

    def close(self) -> None:
        if self._connection is not None and not self._connection.closed:
            self._connection.close()
        self._connection = None

    def __enter__(self) -> Database:
        self.open()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


@contextmanager
def savepoint(cursor: Any, name: str) -> Iterator[None]:
    """Run a block under a SAVEPOINT; on error roll back to it and re-raise.

    A failed statement aborts the whole PostgreSQL transaction, so optional
    queries whose failure is tolerated must be wrapped in one.
    """
    cursor.execute(f"SAVEPOINT {name}")
    try:
        yield
    except Exception:
        cursor.execute(f"ROLLBACK TO SAVEPOINT {name}")
        raise
    else:
        cursor.execute(f"RELEASE SAVEPOINT {name}")
