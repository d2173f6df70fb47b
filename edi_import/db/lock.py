from __future__ import annotations

import logging
from typing import Any

import psycopg2
from psycopg2 import sql

from ..errors import LockError
from .connection import Database

"""Cross-process exclusive lock.

The lock is the run's current transaction: acquire() opens it on the shared
connection and takes an ACCESS EXCLUSIVE lock on the sentinel table, so any
other importer instance blocks on the same statement until the transaction
ends. Every statement issued through the returned cursor runs inside it.
"""

__all__ = [
    "LOCK_TABLE",
    "ExclusiveLock",
]

logger = logging.getLogger(__name__)

LOCK_TABLE = "edi_import_lock"


class ExclusiveLock:
    def __init__(self, db: Database, table: str = LOCK_TABLE) -> None:
        self.db = db
        self.table = table
        self._cursor: Any = None

    @property
    def held(self) -> bool:
        return self._cursor is not None

    def acquire(self) -> Any:
        """Begin the locking transaction and return its cursor.

        Returns the cursor already held when called again before release().

        Raises:
            LockError: the lock statement failed
            DatabaseConnectionError: the connection could not be opened
        """
        if self._cursor is not None:
            return self._cursor
        conn = self.db.connection
        cursor = conn.cursor()
        try:
            cursor.execute(
                sql.SQL("LOCK TABLE {} IN ACCESS EXCLUSIVE MODE").format(sql.Identifier(self.table))
            )
        except psycopg2.Error as e:
            logger.critical(f"Cannot acquire lock on table {self.table}. Error: {e}")
            cursor.close()
            conn.rollback()
            raise LockError(f"cannot acquire lock on table {self.table}: {e}") from e
        self._cursor = cursor
        return cursor

    def release(self, commit: bool = True, rollback: bool = True) -> bool:
        """End the locking transaction.

        commit=True clears the sentinel table and commits; commit=False rolls
        back. When the commit fails the transaction is rolled back, unless
        rollback=False, in which case the process exits with status 1.
        The held cursor is always closed and forgotten.

        Returns:
            False when a requested commit failed and the work was rolled back,
            True otherwise
        """
        if self._cursor is None:
            return True
        conn = self.db.connection
        try:
            if commit:
                self._cursor.execute(sql.SQL("DELETE FROM {}").format(sql.Identifier(self.table)))
                conn.commit()
            else:
                conn.rollback()
            return True
        except psycopg2.Error as e:
            logger.critical(f"Error committing transaction: {e}")
            if not rollback:
                raise SystemExit(1) from e
            conn.rollback()
            return False
        finally:
            self._cursor.close()
            self._cursor = None

    def __enter__(self) -> Any:
        return self.acquire()

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release(commit=exc_type is None)
