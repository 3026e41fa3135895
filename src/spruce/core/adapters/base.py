"""Database adapter base class.

Manifesto:
    An adapter is the core's only view of a driver: it knows how to open
    a new connection in auto-commit mode and nothing else. Pooling and
    acquisition strategy belong to the embedding application, so every
    ``open()`` is a fresh, independent connection.

Features:
    - Abstract ``_connect()`` per backend, wrapped by ``open()``
    - Driver failures surface as ``DatabaseConnectionError``
    - Config-driven construction from ``DatabaseConfig``

Tags:
    spruce, database, abstract-base, adapter-pattern, data-source

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from spruce.core.errors import DatabaseConnectionError, SpruceError
from spruce.core.logging import get_logger
from spruce.core.protocols import Connection

from .types import DatabaseConfig, DatabaseType

logger = get_logger(__name__)


class DatabaseAdapter(ABC):
    """
    Abstract base class for data sources.

    Subclasses implement ``_connect()``; ``open()`` adds uniform error
    wrapping and logging. Satisfies the ``DataSource`` protocol.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config

    @property
    def config(self) -> DatabaseConfig:
        """Connection configuration."""
        return self._config

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @abstractmethod
    def _connect(self) -> Connection:
        """Open a driver connection in auto-commit mode."""
        ...

    def open(self) -> Connection:
        """Open a new connection. Raises ``DatabaseConnectionError`` on failure."""
        try:
            conn = self._connect()
        except SpruceError:
            raise
        except Exception as e:
            logger.warning("connection_failed", backend=self.db_type.value, error=str(e))
            raise DatabaseConnectionError(
                f"Failed to connect to {self.db_type.value}: {e}",
                cause=e,
            ) from e
        logger.debug("connection_opened", backend=self.db_type.value)
        return conn

    def __repr__(self) -> str:
        target = self._config.describe()
        return f"{self.__class__.__name__}({target!r})"


__all__ = [
    "DatabaseAdapter",
]
