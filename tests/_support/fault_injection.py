"""
Fake DB-API objects with injectable faults.

The real engine (sqlite3) almost never fails on close or commit, so the
error paths of ``DBContext`` and ``DBStatement`` are exercised against
these fakes instead. Every call is appended to a shared ``events`` log
so tests can assert ordering across cursors and the connection.

Usage in test code::

    from tests._support.fault_injection import FakeDataSource

    source = FakeDataSource(rows=[(1, "alice")], columns=["id", "owner"])
    source.faults["connection.close"] = RuntimeError("socket gone")
    database = Database(source)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class FakeCursor:
    """DB-API cursor double serving a fixed result set."""

    def __init__(self, source: FakeDataSource, name: str) -> None:
        self._source = source
        self.name = name
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.rowcount = -1
        self.description: list[tuple[Any, ...]] | None = None
        self.fetches = 0
        self.closed = False
        self._pending: list[Sequence[Any]] = []

    def execute(self, sql: str, params: Sequence[Any] = ()) -> FakeCursor:
        self._source.raise_fault("cursor.execute")
        self.executed.append((sql, tuple(params)))
        self._source.events.append(f"execute:{sql}")
        self.rowcount = self._source.rowcount
        self.description = [(c, None, None, None, None, None, None) for c in self._source.columns]
        self._pending = list(self._source.rows)
        return self

    def fetchone(self) -> Sequence[Any] | None:
        self.fetches += 1
        if not self._pending:
            return None
        return self._pending.pop(0)

    def close(self) -> None:
        self._source.events.append(f"close:{self.name}")
        self.closed = True
        self._source.raise_fault(f"close:{self.name}")


class FakeConnection:
    """DB-API connection double recording autocommit switches and teardown."""

    def __init__(self, source: FakeDataSource) -> None:
        self._source = source
        self._autocommit = True
        self.closed = False
        self.cursors: list[FakeCursor] = []

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._source.events.append(f"autocommit:{value}")
        self._autocommit = value

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self._source, f"cursor{len(self.cursors) + 1}")
        self.cursors.append(cursor)
        return cursor

    def commit(self) -> None:
        self._source.raise_fault("connection.commit")
        self._source.events.append("commit")

    def rollback(self) -> None:
        self._source.raise_fault("connection.rollback")
        self._source.events.append("rollback")

    def close(self) -> None:
        self._source.events.append("close:connection")
        self.closed = True
        self._source.raise_fault("connection.close")


class FakeDataSource:
    """Data source handing out ``FakeConnection`` objects."""

    def __init__(
        self,
        *,
        rows: Sequence[Sequence[Any]] = (),
        columns: Sequence[str] = (),
        rowcount: int = 1,
    ) -> None:
        self.rows = list(rows)
        self.columns = list(columns)
        self.rowcount = rowcount
        self.events: list[str] = []
        self.faults: dict[str, Exception] = {}
        self.connections: list[FakeConnection] = []

    def raise_fault(self, point: str) -> None:
        fault = self.faults.get(point)
        if fault is not None:
            raise fault

    def open(self) -> FakeConnection:
        self.raise_fault("open")
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn
