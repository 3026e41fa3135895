"""Name → data source class lookup.

Manifesto:
    ``create_data_source()`` decides *which* backend a URL names; this
    registry decides *which class* builds it. Embedding applications can
    swap a backend (an instrumented SQLite adapter, a test double) by
    re-registering a name without touching URL parsing.

Features:
    - Names are case-insensitive; aliases point at the same class
    - Lookups and registrations are lock-protected
    - Unknown names raise ``ConfigError`` listing what is available

Tags:
    spruce, database, registry, factory

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from typing import Any

from spruce.core.errors import ConfigError

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType

_BUILTIN: dict[str, type[DatabaseAdapter]] = {
    DatabaseType.SQLITE.value: SQLiteAdapter,
    DatabaseType.POSTGRESQL.value: PostgreSQLAdapter,
    "postgres": PostgreSQLAdapter,
}


class AdapterRegistry:
    """
    Maps backend names to ``DatabaseAdapter`` subclasses.

    Built-in names: ``sqlite``, ``postgresql`` and its alias ``postgres``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._classes: dict[str, type[DatabaseAdapter]] = dict(_BUILTIN)

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Bind ``name`` to ``adapter_class``, replacing any previous binding."""
        with self._lock:
            self._classes[name.lower()] = adapter_class

    def create(self, name: str, **kwargs: Any) -> DatabaseAdapter:
        """Instantiate the adapter bound to ``name`` with ``kwargs``."""
        key = name.lower()
        with self._lock:
            adapter_class = self._classes.get(key)
            known = sorted(self._classes)
        if adapter_class is None:
            raise ConfigError(f"Unknown database adapter: {key}").with_context(available=known)
        return adapter_class(**kwargs)

    def list_adapters(self) -> list[str]:
        """Registered names, sorted."""
        with self._lock:
            return sorted(self._classes)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self._lock:
            return name.lower() in self._classes


adapter_registry = AdapterRegistry()


def get_adapter(db_type: DatabaseType | str, **kwargs: Any) -> DatabaseAdapter:
    """
    Build a data source from the process-wide registry.

    Usage:
        source = get_adapter(DatabaseType.SQLITE, path="app.db")
        source = get_adapter("postgres", host="db", database="billing")
    """
    name = db_type.value if isinstance(db_type, DatabaseType) else db_type
    return adapter_registry.create(name, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
