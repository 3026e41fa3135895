"""PostgreSQL database adapter.

Requires ``psycopg2`` (``pip install spruce[postgresql]``). The driver is
imported at ``open()`` time so the rest of spruce works without it.
A ``psycopg2`` connection already satisfies the ``Connection`` protocol;
the adapter only switches it into auto-commit mode.
"""

from __future__ import annotations

from typing import Any

from spruce.core.errors import ConfigError
from spruce.core.protocols import Connection

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL data source.

    Parameters use the ``%s`` paramstyle; SQL text is passed through
    unchanged.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        ssl_mode: str = "prefer",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            ssl_mode=ssl_mode,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)

    def _connect(self) -> Connection:
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install spruce[postgresql]"
            ) from None

        conn = psycopg2.connect(
            host=self._config.host,
            port=self._config.port,
            dbname=self._config.database,
            user=self._config.username,
            password=self._config.password,
            sslmode=self._config.ssl_mode,
            connect_timeout=self._config.connect_timeout,
            **self._config.options,
        )
        conn.autocommit = True
        return conn


__all__ = [
    "PostgreSQLAdapter",
]
