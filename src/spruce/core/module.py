"""
Module extension contract.

A module is a capability bound to exactly one ``DBContext`` for its
whole life: a repository, an accounts service, a cache of lookups made
on this connection. The embedding application defines the variants;
the core only guarantees that each type is built at most once per
context, lazily, through the factory registered on the ``Database``.

Manifesto:
    - **Lazy:** Built on first ``ctx.get_module(T)``, never before
    - **Cached:** Same instance for every later request on that context
    - **Bound:** Reads the context's connection, never owns it
    - **Closed with the context:** ``close()`` runs during context teardown

Architecture:
    ::

        Database.register(Accounts, factory)        (startup)
        Database.init_factories()                   factory.init(db), in order

        ctx.get_module(Accounts)
            ├── cached?  → same instance
            └── factory.create(ctx) → Accounts(ctx) → cache + track

Examples:
    >>> class Accounts(DBModule):
    ...     def balance(self, account_id):
    ...         stmt = self.context.prepare("SELECT balance FROM accounts WHERE id = ?")
    ...         return stmt.query_single(params=(account_id,))
    >>> database.register(Accounts)
    >>> with database.get_context() as ctx:
    ...     ctx.get_module(Accounts).balance(7)

Tags:
    module, extension, factory, plugin, spruce

Doc-Types:
    - API Reference
    - Extension Guide
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from spruce.core.context import DBContext
    from spruce.core.database import Database
    from spruce.core.protocols import Connection


class DBModule:
    """Base class for context-bound extensions."""

    def __init__(self, ctx: DBContext):
        self._ctx = ctx

    @property
    def context(self) -> DBContext:
        return self._ctx

    @property
    def connection(self) -> Connection:
        return self._ctx.connection

    @property
    def database(self) -> Database:
        return self._ctx.database

    def close(self) -> None:
        """Teardown hook, invoked once when the owning context closes."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(ctx={self._ctx!r})"


M = TypeVar("M", bound=DBModule)


class ModuleFactory(ABC, Generic[M]):
    """Creates one module type; optionally runs a one-time registry-scoped init."""

    @abstractmethod
    def create(self, ctx: DBContext) -> M:
        """Build the module bound to ``ctx``."""
        ...

    def init(self, database: Database) -> None:
        """One-time initialization, run by ``Database.init_factories()``."""


class ClassModuleFactory(ModuleFactory[M]):
    """Factory that builds ``module_cls(ctx)``.

    ``on_init`` (if given) is called with the database from ``init()``,
    e.g. to create the tables the module relies on.
    """

    def __init__(
        self,
        module_cls: type[M],
        on_init: Callable[[Database], None] | None = None,
    ):
        self.module_cls = module_cls
        self._on_init = on_init

    def create(self, ctx: DBContext) -> M:
        return self.module_cls(ctx)

    def init(self, database: Database) -> None:
        if self._on_init is not None:
            self._on_init(database)

    def __repr__(self) -> str:
        return f"ClassModuleFactory({self.module_cls.__qualname__})"


class FunctionModuleFactory(ModuleFactory[M]):
    """Adapts plain callables to the factory contract."""

    def __init__(
        self,
        create: Callable[[DBContext], M],
        init: Callable[[Database], None] | None = None,
    ):
        self._create = create
        self._init = init

    def create(self, ctx: DBContext) -> M:
        return self._create(ctx)

    def init(self, database: Database) -> None:
        if self._init is not None:
            self._init(database)


__all__ = [
    "DBModule",
    "ModuleFactory",
    "ClassModuleFactory",
    "FunctionModuleFactory",
]
