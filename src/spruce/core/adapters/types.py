"""Backend identifiers and the parameters a data source opens connections with."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from spruce.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Backends with a built-in data source."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


@dataclass
class DatabaseConfig:
    """
    Everything an adapter needs to open a connection.

    SQLite reads ``path``, ``timeout`` and ``readonly``; PostgreSQL reads
    the network fields. ``options`` is passed through to the driver.
    """

    db_type: DatabaseType = DatabaseType.SQLITE

    # sqlite3
    path: str | None = None
    timeout: float = 5.0
    readonly: bool = False

    # psycopg2
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    username: str | None = None
    password: str | None = None
    ssl_mode: str = "prefer"
    connect_timeout: int = 10

    options: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        """Human-readable target without credentials (for logs and reprs)."""
        if self.db_type is DatabaseType.SQLITE:
            return self.path or ":memory:"
        return f"{self.host}:{self.port}/{self.database}"

    def to_connection_string(self) -> str:
        """Render the config back into the URL/path form ``create_data_source`` accepts."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.POSTGRESQL:
                userinfo = self.username or ""
                if self.password:
                    userinfo += f":{self.password}"
                prefix = f"{userinfo}@" if userinfo else ""
                return f"postgresql://{prefix}{self.describe()}"
            case _:
                raise ConfigError(f"No connection string form for {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
