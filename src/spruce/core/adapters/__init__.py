"""Database adapters -- the data sources behind ``Database.get_context()``.

Manifesto:
    The core never talks to a driver module directly. An adapter opens a
    new DB-API connection in auto-commit mode and hands it to a
    ``DBContext``; everything after that goes through the ``Connection``
    protocol.

    Each adapter is **import-guarded**: the database driver is only required
    at ``open()`` time, not at import time.  Install the corresponding extra::

        pip install spruce[postgresql]   # psycopg2-binary

Architecture::

    DatabaseAdapter (base.py)        Abstract base: open() -> Connection
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)

    AdapterRegistry (registry.py)    name -> adapter class
    DatabaseConfig (types.py)        Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ ``ctx.execute("SELECT * FROM t WHERE id=" + user_input)``
    ✅ ``ctx.execute("SELECT * FROM t WHERE id=?", user_input)``
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``open()`` time with clear ``ConfigError``

Tags:
    spruce, database, adapters, import-guarded, registry-pattern,
    postgresql, sqlite

Doc-Types:
    package-overview, module-index
"""

from spruce.core.protocols import Connection, DataSource

from .base import DatabaseAdapter
from .postgresql import PostgreSQLAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SqliteConnection, SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    # Types
    "DatabaseType",
    "DatabaseConfig",
    # Protocols
    "Connection",
    "DataSource",
    # Base class
    "DatabaseAdapter",
    # Implementations
    "SqliteConnection",
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    # Registry
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
