"""SQLite database adapter.

Uses the built-in ``sqlite3`` module. Every ``open()`` is a new
connection; a ``:memory:`` data source therefore hands out a fresh,
empty database per context. Use a file path when contexts must share
data.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from spruce.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    The raw connection runs with ``isolation_level=None`` so the driver
    never opens transactions behind our back. Turning ``autocommit`` off
    issues an explicit ``BEGIN``; while it stays off, every commit or
    rollback immediately begins the next transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        conn.isolation_level = None
        self._conn = conn
        self._autocommit = True

    # -- Connection protocol -----------------------------------------------

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        if value == self._autocommit:
            return
        if value:
            # Re-enabling auto-commit commits whatever is pending
            if self._conn.in_transaction:
                self._conn.commit()
            self._autocommit = True
        else:
            self._conn.execute("BEGIN")
            self._autocommit = False

    def cursor(self) -> sqlite3.Cursor:
        return self._conn.cursor()

    def commit(self) -> None:
        self._conn.commit()
        if not self._autocommit:
            self._conn.execute("BEGIN")

    def rollback(self) -> None:
        self._conn.rollback()
        if not self._autocommit:
            self._conn.execute("BEGIN")

    def close(self) -> None:
        self._conn.close()

    # -- convenience -------------------------------------------------------

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._conn!r})"


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite data source.

    Suitable for:
    - Development and testing
    - Single-process applications
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            timeout=timeout,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)

    def _connect(self) -> Connection:
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        raw = sqlite3.connect(
            path,
            timeout=self._config.timeout,
            check_same_thread=False,
            uri=uri,
            isolation_level=None,
        )
        try:
            raw.execute("PRAGMA foreign_keys = ON")
            if self._config.readonly:
                raw.execute("PRAGMA query_only = ON")
        except sqlite3.Error:
            raw.close()
            raise

        return SqliteConnection(raw)


__all__ = [
    "SqliteConnection",
    "SQLiteAdapter",
]
