"""
Statement wrapper: one SQL text bound to one context.

Manifesto:
    Most units of work run the same SQL many times with different
    parameters. ``DBStatement`` keeps the SQL, its driver cursor and the
    current parameter row together, and adds an explicit batch mode in
    which bound rows are staged and flushed later.

Architecture:
    ::

        ctx.prepare(sql) ─► DBStatement (tracked by ctx)
            │
            ├── bind(*values)        parameters[i] = values[i]
            │       └── batch mode:  stage a snapshot of parameters
            ├── execute(*values)     single write → row count
            ├── execute_batch()      staged rows → [row count, ...]
            └── query(*values)       fresh driver cursor → ResultCursor
                                     (tracked by ctx)

Examples:
    >>> stmt = ctx.prepare("INSERT INTO accounts (id, owner) VALUES (?, ?)")
    >>> stmt.begin_batch()
    >>> for account in accounts:
    ...     stmt.bind(account.id, account.owner)
    >>> stmt.execute_batch()
    [1, 1, 1]

    >>> ctx.prepare("SELECT owner FROM accounts WHERE id = ?").query_single(params=(7,))
    'alice'

Guardrails:
    ❌ DON'T: call execute() after begin_batch()
    ✅ DO: stage with bind() and flush with execute_batch()

    ❌ DON'T: construct DBStatement directly
    ✅ DO: use ctx.prepare() so the statement is tracked

Tags:
    statement, batch, prepared, dbapi, spruce

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from spruce.core.cursor import Column, ResultCursor
from spruce.core.errors import InvalidStatementStateError, StateError, engine_errors
from spruce.core.logging import get_logger
from spruce.core.protocols import Cursor
from spruce.core.unpackers import Unpacker, as_unpacker

if TYPE_CHECKING:
    from spruce.core.context import DBContext

logger = get_logger(__name__)


class DBStatement:
    """A reusable SQL handle supporting single, batched and query execution."""

    def __init__(self, ctx: DBContext, sql: str, cursor: Cursor) -> None:
        self._ctx = ctx
        self._sql = sql
        self._cursor = cursor
        self._parameters: list[Any] = []
        self._batch = False
        self._staged: list[tuple[Any, ...]] = []
        self._closed = False

    @property
    def context(self) -> DBContext:
        return self._ctx

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def cursor(self) -> Cursor:
        """The driver cursor used for writes."""
        return self._cursor

    @property
    def batch(self) -> bool:
        """True while the statement is in batch mode."""
        return self._batch

    @property
    def staged_count(self) -> int:
        return len(self._staged)

    @property
    def parameters(self) -> tuple[Any, ...]:
        """Currently bound positional parameters."""
        return tuple(self._parameters)

    @property
    def closed(self) -> bool:
        return self._closed

    # -- batch mode --------------------------------------------------------

    def begin_batch(self) -> DBStatement:
        """Enter batch mode: bind() stages rows instead of executing."""
        self._batch = True
        return self

    def clear_batch(self) -> DBStatement:
        """Leave batch mode and discard every staged row."""
        self._batch = False
        self._staged.clear()
        return self

    # -- binding -----------------------------------------------------------

    def bind(self, *values: Any) -> DBStatement:
        """Bind positional parameters (0-based); stage the row in batch mode.

        Slot ``i`` is overwritten by ``values[i]``; slots beyond
        ``len(values)`` keep what was bound before.
        """
        self._check_open()
        for i, value in enumerate(values):
            if i < len(self._parameters):
                self._parameters[i] = value
            else:
                self._parameters.append(value)
        if self._batch:
            self._staged.append(tuple(self._parameters))
        return self

    # -- execution ---------------------------------------------------------

    def execute(self, *values: Any) -> int:
        """Bind and perform one write. Returns the affected-row count."""
        if self._batch:
            raise InvalidStatementStateError(
                "Cannot execute() a batched statement. Use execute_batch() instead."
            ).with_context(operation="execute", sql=self._sql)
        self.bind(*values)
        with engine_errors("execute", self._sql):
            self._cursor.execute(self._sql, tuple(self._parameters))
            return self._cursor.rowcount

    def execute_batch(self) -> list[int]:
        """Execute every staged row in staging order; one row count per row.

        Staged rows are cleared afterwards; batch mode stays on.
        """
        self._check_open()
        staged, self._staged = self._staged, []
        counts: list[int] = []
        with engine_errors("execute_batch", self._sql):
            for params in staged:
                self._cursor.execute(self._sql, params)
                counts.append(self._cursor.rowcount)
        logger.debug("batch_executed", sql=self._sql, rows=len(counts))
        return counts

    def query(self, *values: Any) -> ResultCursor:
        """Bind and execute a read. The returned cursor is tracked by the context."""
        self.bind(*values)
        with engine_errors("query", self._sql):
            cursor = self._ctx.connection.cursor()
            try:
                cursor.execute(self._sql, tuple(self._parameters))
            except Exception:
                cursor.close()
                raise
        return self._ctx.track_closeable(ResultCursor(cursor, sql=self._sql))

    # -- query compositions ------------------------------------------------

    def query_single(
        self,
        column: Column | Unpacker[Any] = 0,
        *,
        type_: Callable[[Any], Any] | None = None,
        params: tuple[Any, ...] = (),
    ) -> Any:
        """First row through ``column`` (position, name or unpacker); None when empty."""
        unpacker = as_unpacker(column, type_)
        return self._ctx.unpack_single(self.query(*params), unpacker)

    def query_list(
        self,
        column: Column | Unpacker[Any] = 0,
        *,
        type_: Callable[[Any], Any] | None = None,
        params: tuple[Any, ...] = (),
    ) -> list[Any]:
        """Every row through ``column`` (position, name or unpacker)."""
        unpacker = as_unpacker(column, type_)
        return self._ctx.unpack_list(self.query(*params), unpacker)

    def query_map(
        self,
        key: Column | Unpacker[Any],
        value: Column | Unpacker[Any],
        *,
        key_type: Callable[[Any], Any] | None = None,
        value_type: Callable[[Any], Any] | None = None,
        params: tuple[Any, ...] = (),
    ) -> dict[Any, Any]:
        """Rows as ``{key: value}``; the last row wins on a duplicate key."""
        key_unpacker = as_unpacker(key, key_type)
        value_unpacker = as_unpacker(value, value_type)
        return self._ctx.unpack_map(self.query(*params), key_unpacker, value_unpacker)

    def count(self, *values: Any) -> int:
        """Number of rows the query produces, fetched one at a time."""
        results = self.query(*values)
        total = 0
        while results.advance():
            total += 1
        return total

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Release the driver cursor and stop being tracked. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._ctx.untrack(self)
        self._staged.clear()
        with engine_errors("close statement", self._sql):
            self._cursor.close()

    def _check_open(self) -> None:
        if self._closed:
            raise StateError("Statement is closed").with_context(sql=self._sql)

    def __repr__(self) -> str:
        mode = "batch" if self._batch else "single"
        return f"DBStatement({self._sql!r}, {mode})"


__all__ = [
    "DBStatement",
]
