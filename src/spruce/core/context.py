"""
Execution context: one unit of work on one live connection.

Manifesto:
    A ``DBContext`` is the scope in which everything derived from a
    connection lives and dies. It owns the connection, the modules built
    for it, the statements and cursors it handed out, and the
    transaction flag. Closing it releases all of that in a fixed order,
    and refuses to do so while a transaction is still open.

    - **Lazy modules:** ``get_module(T)`` builds T once per context
    - **Tracked resources:** every statement/cursor/module is released on close
    - **Ordered teardown:** tracking order, then the connection
    - **Transaction safety:** no silent close mid-transaction

Architecture:
    ::

        Database.get_context()
            └── DBContext(database, connection)
                  ├── modules:  {type: DBModule}        (lazy, cached)
                  ├── tracker:  ResourceTracker         (ordered)
                  └── in_transaction: bool

        Transaction state machine:
            Idle ──begin──► InTransaction ──commit/abort──► Idle

        close():
            in_transaction?  → ActiveTransactionError (nothing released)
            tracker.release_all()  (registration order, keep going on failure)
            connection.close()
            failures?        → CloseAggregateError (all of them)

Examples:
    >>> with database.get_context() as ctx:
    ...     with ctx.transaction():
    ...         ctx.execute("UPDATE accounts SET balance = balance - ? WHERE id = ?", 10, 1)
    ...         ctx.execute("UPDATE accounts SET balance = balance + ? WHERE id = ?", 10, 2)
    ...     owners = ctx.unpack_list(ctx.query("SELECT owner FROM accounts"), column("owner"))

Guardrails:
    ❌ DON'T: share a context between threads
    ✅ DO: one context per unit of work, confined to one thread

    ❌ DON'T: close() with a transaction open
    ✅ DO: commit_transaction() / abort_transaction() first, or use transaction()

Tags:
    context, unit-of-work, transaction, resource-tracking, module-cache, spruce

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from spruce.core.cursor import ResultCursor
from spruce.core.errors import (
    ActiveTransactionError,
    CloseAggregateError,
    ContextClosedError,
    InvalidTransactionStateError,
    engine_errors,
)
from spruce.core.logging import get_logger
from spruce.core.module import DBModule
from spruce.core.protocols import Closeable, Connection
from spruce.core.statement import DBStatement
from spruce.core.tracker import ResourceTracker
from spruce.core.unpackers import Unpacker

if TYPE_CHECKING:
    from spruce.core.database import Database

logger = get_logger(__name__)

M = TypeVar("M", bound=DBModule)
C = TypeVar("C", bound=Closeable)
T = TypeVar("T")
K = TypeVar("K")
V = TypeVar("V")


class DBContext:
    """
    Scoped unit of work wrapping one live connection.

    Not thread-safe: confine each context to the thread that uses it.
    """

    def __init__(self, database: Database, connection: Connection):
        self._database = database
        self._conn = connection
        self._modules: dict[type[DBModule], DBModule] = {}
        self._tracker = ResourceTracker()
        self._in_transaction = False
        self._closed = False

    # -- accessors ---------------------------------------------------------

    @property
    def connection(self) -> Connection:
        return self._conn

    @property
    def database(self) -> Database:
        return self._database

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def tracked_count(self) -> int:
        """Resources still waiting to be released."""
        return len(self._tracker)

    # -- modules -----------------------------------------------------------

    def get_module(self, module_type: type[M]) -> M:
        """Return this context's instance of ``module_type``, building it on first use."""
        self._check_open()
        module = self._modules.get(module_type)
        if module is None:
            factory = self._database.get_factory(module_type)
            module = factory.create(self)
            self._modules[module_type] = module
            self.track_closeable(module)
            logger.debug("module_created", module=module_type.__qualname__)
        return module  # type: ignore[return-value]

    # -- transactions ------------------------------------------------------

    def begin_transaction(self) -> None:
        """Idle → InTransaction. Disables auto-commit."""
        self._check_open()
        if self._in_transaction:
            raise InvalidTransactionStateError(
                "Transaction already active; commit or abort it before beginning another"
            ).with_context(operation="begin_transaction")
        with engine_errors("begin_transaction"):
            self._conn.autocommit = False
        self._in_transaction = True
        logger.debug("transaction_begun")

    def abort_transaction(self) -> None:
        """InTransaction → Idle. Rolls back and re-enables auto-commit.

        The flag is cleared even when the rollback fails: the connection
        can then only be closed, which discards the uncommitted work.
        """
        self._require_transaction("abort_transaction")
        try:
            with engine_errors("abort_transaction"):
                self._conn.rollback()
                self._conn.autocommit = True
        finally:
            self._in_transaction = False
        logger.debug("transaction_aborted")

    def commit_transaction(self) -> None:
        """InTransaction → Idle. Commits and re-enables auto-commit.

        When the commit fails the transaction stays active; abort it.
        """
        self._require_transaction("commit_transaction")
        with engine_errors("commit_transaction"):
            self._conn.commit()
            self._conn.autocommit = True
        self._in_transaction = False
        logger.debug("transaction_committed")

    @contextmanager
    def transaction(self) -> Iterator[DBContext]:
        """Begin; commit on normal exit, abort and re-raise on exception."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            if self._in_transaction:
                try:
                    self.abort_transaction()
                except Exception as e:
                    logger.warning("transaction_abort_failed", error=str(e))
            raise
        self.commit_transaction()

    # -- statements --------------------------------------------------------

    def prepare(self, sql: str) -> DBStatement:
        """Wrap ``sql`` in a tracked ``DBStatement``."""
        self._check_open()
        with engine_errors("prepare", sql):
            cursor = self._conn.cursor()
        return self.track_closeable(DBStatement(self, sql, cursor))

    def execute(self, statement: str | DBStatement, *values: Any) -> int:
        """Bind ``values`` and perform a write/DDL. Returns the affected-row count.

        A statement prepared here from raw SQL is closed straight away, so
        repeated calls do not pile up open driver cursors.
        """
        if isinstance(statement, DBStatement):
            return statement.execute(*values)
        one_shot = self.prepare(statement)
        try:
            return one_shot.execute(*values)
        finally:
            one_shot.close()

    def query(self, statement: str | DBStatement, *values: Any) -> ResultCursor:
        """Bind ``values`` and execute a read. The cursor is released on close."""
        if isinstance(statement, str):
            statement = self.prepare(statement)
        results = statement.query(*values)
        if statement.context is not self:
            # released by whichever context closes first
            self.track_closeable(results)
        return results

    # -- unpacking ---------------------------------------------------------

    def unpack_single(self, results: ResultCursor, unpacker: Unpacker[T]) -> T | None:
        """The first row through ``unpacker``, or None when there are no rows."""
        if not results.advance():
            return None
        return unpacker(results)

    def unpack_list(self, results: ResultCursor, unpacker: Unpacker[T]) -> list[T]:
        """Every remaining row through ``unpacker``, in cursor order."""
        result_list: list[T] = []
        while results.advance():
            result_list.append(unpacker(results))
        return result_list

    def unpack_map(
        self,
        results: ResultCursor,
        key_unpacker: Unpacker[K],
        value_unpacker: Unpacker[V],
    ) -> dict[K, V]:
        """Every remaining row as ``{key: value}``; later rows win on duplicate keys."""
        result_map: dict[K, V] = {}
        while results.advance():
            result_map[key_unpacker(results)] = value_unpacker(results)
        return result_map

    # -- resource tracking -------------------------------------------------

    def track_closeable(self, resource: C) -> C:
        """Register ``resource`` for release on close; returns it unchanged."""
        self._check_open()
        return self._tracker.track(resource)

    def untrack(self, resource: object) -> None:
        """Forget ``resource`` without closing it; the caller owns its release."""
        self._tracker.discard(resource)

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Release tracked resources in tracking order, then close the connection.

        Raises:
            ActiveTransactionError: a transaction is open; nothing is released.
            CloseAggregateError: one or more releases failed; all were attempted.
        """
        if self._closed:
            return
        if self._in_transaction:
            raise ActiveTransactionError().with_context(operation="close")

        errors = self._tracker.release_all()
        try:
            self._conn.close()
        except Exception as e:
            logger.warning("connection_close_failed", error=str(e))
            errors.append(e)

        self._closed = True
        self._modules.clear()
        logger.debug("context_closed", failures=len(errors))

        if errors:
            raise CloseAggregateError(errors).with_context(operation="close")

    def _check_open(self) -> None:
        if self._closed:
            raise ContextClosedError("Context is closed")

    def _require_transaction(self, operation: str) -> None:
        self._check_open()
        if not self._in_transaction:
            raise InvalidTransactionStateError(
                "No active transaction"
            ).with_context(operation=operation)

    def __enter__(self) -> DBContext:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
            return

        # Unwinding: roll back so teardown can complete, keep the original error
        if self._in_transaction:
            try:
                self.abort_transaction()
            except Exception as e:
                logger.warning("transaction_abort_failed", error=str(e))
        try:
            self.close()
        except Exception as e:
            logger.warning("context_close_failed", error=str(e))

    def __repr__(self) -> str:
        state = "closed" if self._closed else ("in-transaction" if self._in_transaction else "open")
        return f"DBContext({state}, tracked={len(self._tracker)})"


__all__ = [
    "DBContext",
]
