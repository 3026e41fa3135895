"""
Database: process-wide registry of module factories and context mint.

Manifesto:
    An application builds exactly one ``Database`` at startup, registers
    the module types it uses, runs their one-time initialization, and
    from then on asks it for a fresh ``DBContext`` per unit of work. The
    database is explicit state passed around by reference, never a
    module-level global.

    - **Registration order is init order:** deterministic startup
    - **Thread-safe registry:** register/lookup from any thread
    - **No pooling:** every context gets a brand new connection

Architecture:
    ::

        Database(data_source)
        ├── _factories:  {module type: ModuleFactory}
        ├── _init_order: [module type, ...]   (registration order, no duplicates)
        │
        ├── register(T, factory)     → map + init order
        ├── get_factory(T)           → factory | ModuleNotRegisteredError
        ├── init_factories()         → factory.init(db) in order, stop at first failure
        ├── get_context()            → DBContext(db, data_source.open())
        ├── execute(sql, *values)    → open, execute, close
        └── query(sql, *values)      → open, query, materialise, close

Examples:
    >>> database = Database.from_url("sqlite:///app.db")
    >>> database.register(Accounts)
    >>> database.register(Ledger, ClassModuleFactory(Ledger, on_init=create_ledger_tables))
    >>> database.init_factories()
    >>> with database.get_context() as ctx:
    ...     ctx.get_module(Accounts).open_account("alice")

Guardrails:
    ❌ DON'T: return a live cursor from a context that is about to close
    ✅ DO: Database.query() materialises rows before closing

    ❌ DON'T: register modules after worker threads are serving requests
    ✅ DO: register and init_factories() once at startup

Tags:
    registry, factory, database, module, context, spruce

Doc-Types:
    - API Reference
    - Architecture Decision Record
"""

from __future__ import annotations

import threading
from typing import Any, TypeVar

from spruce.core.connection import create_data_source
from spruce.core.context import DBContext
from spruce.core.errors import DatabaseConnectionError, ModuleNotRegisteredError, SpruceError
from spruce.core.logging import get_logger
from spruce.core.module import ClassModuleFactory, DBModule, ModuleFactory
from spruce.core.protocols import DataSource
from spruce.core.settings import SpruceSettings, get_settings
from spruce.core.unpackers import Unpacker, as_dict

logger = get_logger(__name__)

M = TypeVar("M", bound=DBModule)


class Database:
    """Registry of module factories bound to one data source."""

    def __init__(self, data_source: DataSource):
        self._data_source = data_source
        self._lock = threading.RLock()
        self._factories: dict[type[DBModule], ModuleFactory[Any]] = {}
        self._init_order: list[type[DBModule]] = []

    @classmethod
    def from_url(cls, url: str | None, **options: Any) -> Database:
        """Build a database whose data source is chosen by URL."""
        return cls(create_data_source(url, **options))

    @classmethod
    def from_settings(cls, settings: SpruceSettings | None = None) -> Database:
        """Build a database from ``SpruceSettings`` (cached settings when omitted)."""
        settings = settings or get_settings()
        return cls.from_url(
            settings.database_url,
            sqlite_timeout=settings.sqlite_timeout,
            connect_timeout=settings.connect_timeout,
        )

    @property
    def data_source(self) -> DataSource:
        return self._data_source

    # -- registry ----------------------------------------------------------

    def register(self, module_type: type[M], factory: ModuleFactory[M] | None = None) -> None:
        """Register ``factory`` for ``module_type``.

        Without a factory, ``module_type(ctx)`` is used. Re-registering a
        type replaces its factory and keeps its original init position.
        """
        if factory is None:
            factory = ClassModuleFactory(module_type)
        with self._lock:
            replaced = module_type in self._factories
            self._factories[module_type] = factory
            if not replaced:
                self._init_order.append(module_type)
        if replaced:
            logger.warning("factory_replaced", module=module_type.__qualname__)
        else:
            logger.debug("factory_registered", module=module_type.__qualname__)

    def get_factory(self, module_type: type[M]) -> ModuleFactory[M]:
        """Return the factory registered for ``module_type``."""
        with self._lock:
            factory = self._factories.get(module_type)
        if factory is None:
            raise ModuleNotRegisteredError(module_type)
        return factory

    def registered_types(self) -> list[type[DBModule]]:
        """Registered module types in init order."""
        with self._lock:
            return list(self._init_order)

    def init_factories(self) -> None:
        """Run each factory's ``init(self)`` once, in registration order.

        The first failure stops the sequence and propagates; factories
        before it have already run.
        """
        with self._lock:
            factories = [(t, self._factories[t]) for t in self._init_order]
        for module_type, factory in factories:
            factory.init(self)
            logger.debug("factory_initialized", module=module_type.__qualname__)
        logger.info("factories_initialized", count=len(factories))

    # -- contexts ----------------------------------------------------------

    def get_context(self) -> DBContext:
        """Open a new connection and wrap it in a fresh context."""
        try:
            conn = self._data_source.open()
        except SpruceError:
            raise
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to acquire connection: {e}", cause=e) from e
        logger.debug("context_opened")
        return DBContext(self, conn)

    def execute(self, sql: str, *values: Any) -> int:
        """Execute one write in its own context. Returns the affected-row count."""
        with self.get_context() as ctx:
            return ctx.execute(sql, *values)

    def query(
        self,
        sql: str,
        *values: Any,
        unpacker: Unpacker[Any] = as_dict,
    ) -> list[Any]:
        """Run one read in its own context and return every row, unpacked.

        Rows are fully materialised before the context closes; the
        default unpacker yields one dict per row.
        """
        with self.get_context() as ctx:
            return ctx.unpack_list(ctx.query(sql, *values), unpacker)

    def __repr__(self) -> str:
        return f"Database({self._data_source!r}, modules={len(self._init_order)})"


__all__ = [
    "Database",
]
