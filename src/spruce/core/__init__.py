"""Spruce Core -- connection-scoped resource lifecycle and module extensions.

Manifesto:
    Code that talks to a relational database keeps re-solving the same
    problems: which connection does this helper use, who closes the
    cursor it returned, what happens to an open transaction when an
    exception escapes, where does per-connection state live. ``spruce.core``
    answers them once: a ``Database`` mints ``DBContext`` units of work,
    a context builds lazily cached ``DBModule`` extensions and tracks
    every resource it hands out, and closing the context releases all of
    it in order -- but never in the middle of a transaction.

    - **Sync-only:** plain blocking DB-API calls, no background work
    - **Protocol-first:** Connection, Cursor, DataSource are protocols
    - **Import-guarded extras:** psycopg2 loaded only when used

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (SpruceError, EngineError)
        protocols.py       Canonical protocols (Connection, Cursor, DataSource)
        timestamps.py      Timestamp bind/unpack helpers (stdlib-only)

    Layer 2 -- Data Sources
        adapters/          SQLite + PostgreSQL data sources, adapter registry
        connection.py      Data source factory (create_data_source)

    Layer 3 -- Unit of Work
        tracker.py         ResourceTracker (ordered, exactly-once release)
        cursor.py          ResultCursor (positioned row access)
        unpackers.py       Row -> value callables
        statement.py       DBStatement (single, batch, query)
        module.py          DBModule + ModuleFactory contract
        context.py         DBContext (modules, transactions, close ordering)
        database.py        Database (factory registry, context mint)

    Layer 4 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        SpruceSettings (pydantic-settings)

Tags:
    spruce, foundation, unit-of-work, resource-tracking, module-registry,
    sync-only, protocol-first

Doc-Types:
    package-overview, architecture-map, module-index
"""

from spruce.core.adapters import (
    AdapterRegistry,
    DatabaseAdapter,
    DatabaseConfig,
    DatabaseType,
    PostgreSQLAdapter,
    SQLiteAdapter,
    adapter_registry,
    get_adapter,
)
from spruce.core.connection import create_data_source
from spruce.core.context import DBContext
from spruce.core.cursor import ResultCursor
from spruce.core.database import Database
from spruce.core.errors import (
    ActiveTransactionError,
    CloseAggregateError,
    ConfigError,
    ContextClosedError,
    CursorStateError,
    DatabaseConnectionError,
    DatabaseError,
    EngineError,
    ErrorCategory,
    ErrorContext,
    InvalidStatementStateError,
    InvalidTransactionStateError,
    ModuleNotRegisteredError,
    SpruceError,
    StateError,
    TransientError,
    engine_errors,
    is_retryable,
)
from spruce.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    unbind_context,
)
from spruce.core.module import (
    ClassModuleFactory,
    DBModule,
    FunctionModuleFactory,
    ModuleFactory,
)
from spruce.core.protocols import Closeable, Connection, Cursor, DataSource
from spruce.core.settings import SpruceSettings, get_settings
from spruce.core.statement import DBStatement
from spruce.core.timestamps import from_timestamp, offset_datetime_from_timestamp, to_timestamp, utc_now
from spruce.core.tracker import ResourceTracker
from spruce.core.unpackers import Unpacker, as_dict, as_tuple, as_unpacker, column

__all__ = [
    # Registry / unit of work
    "Database",
    "DBContext",
    "DBStatement",
    "DBModule",
    "ModuleFactory",
    "ClassModuleFactory",
    "FunctionModuleFactory",
    "ResourceTracker",
    "ResultCursor",
    # Unpackers
    "Unpacker",
    "column",
    "as_dict",
    "as_tuple",
    "as_unpacker",
    # Protocols
    "Closeable",
    "Connection",
    "Cursor",
    "DataSource",
    # Data sources
    "AdapterRegistry",
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "adapter_registry",
    "get_adapter",
    "create_data_source",
    # Errors
    "SpruceError",
    "ErrorCategory",
    "ErrorContext",
    "TransientError",
    "DatabaseConnectionError",
    "ConfigError",
    "ModuleNotRegisteredError",
    "StateError",
    "InvalidTransactionStateError",
    "ActiveTransactionError",
    "InvalidStatementStateError",
    "ContextClosedError",
    "CursorStateError",
    "DatabaseError",
    "EngineError",
    "CloseAggregateError",
    "engine_errors",
    "is_retryable",
    # Logging
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    # Settings
    "SpruceSettings",
    "get_settings",
    # Timestamps
    "utc_now",
    "to_timestamp",
    "from_timestamp",
    "offset_datetime_from_timestamp",
]
