"""
Canonical protocol definitions for spruce.

This module is the single source of truth for the structural contracts
the core consumes: the DB-API connection and cursor it drives, the data
source that hands out connections, and the closeable shape that the
resource tracker releases.

Manifesto:
    Protocols define contracts without inheritance. The core never
    imports a driver; it only needs objects of the right shape:

    - **Decoupling:** Context and statement code depend on shape, not driver
    - **Testability:** Any fake matching the protocol works in tests
    - **Portability:** Same core on sqlite3 and psycopg2

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Closeable      — anything with close() (tracked resources)
        ├── Cursor         — DB-API 2.0 cursor subset
        ├── Connection     — DB-API 2.0 connection + autocommit switch
        └── DataSource     — opens new Connections

    Implementations:
        adapters/sqlite.py      SqliteConnection, SQLiteAdapter
        adapters/postgresql.py  PostgreSQLAdapter (psycopg2 connections as-is)

Guardrails:
    ❌ DON'T: Import sqlite3/psycopg2 outside the adapters package
    ✅ DO: Type against these protocols

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts — implementations go in adapters

Tags:
    protocol, connection, cursor, data-source, dbapi, spruce

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Closeable(Protocol):
    """Anything the resource tracker can release."""

    def close(self) -> None:
        """Release the resource. Should be idempotent."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """
    Minimal DB-API 2.0 cursor interface.

    ``description`` is a sequence of 7-item column descriptors whose first
    item is the column name; ``rowcount`` is the affected-row count of
    the last write (-1 when the driver cannot tell).
    """

    @property
    def description(self) -> Sequence[Sequence[Any]] | None: ...

    @property
    def rowcount(self) -> int: ...

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Execute one statement with positional parameters."""
        ...

    def fetchone(self) -> Sequence[Any] | None:
        """Fetch the next row, or None when exhausted."""
        ...

    def close(self) -> None:
        """Close the cursor."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface driven by ``DBContext``.

    Connections are handed out in auto-commit mode; ``DBContext`` turns
    auto-commit off for the lifetime of an explicit transaction.

    Architecture:
        ::

            Connection Protocol:
            ┌────────────────────────────────────────────────────────┐
            │ cursor()          → New DB-API cursor                  │
            │ commit()          → Commit transaction                 │
            │ rollback()        → Rollback transaction               │
            │ close()           → Close the connection               │
            │ autocommit        → Read/write auto-commit switch      │
            └────────────────────────────────────────────────────────┘
    """

    @property
    def autocommit(self) -> bool: ...

    @autocommit.setter
    def autocommit(self, value: bool) -> None: ...

    def cursor(self) -> Cursor:
        """Open a new cursor on this connection."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...

    def close(self) -> None:
        """Close the connection."""
        ...


@runtime_checkable
class DataSource(Protocol):
    """Hands out new, independent connections (no pooling)."""

    def open(self) -> Connection:
        """Open a new connection in auto-commit mode."""
        ...


__all__ = [
    "Closeable",
    "Cursor",
    "Connection",
    "DataSource",
]
