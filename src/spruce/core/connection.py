"""Turn a database URL into a data source.

``Database.from_url()`` and ``Database.from_settings()`` both come
through ``create_data_source()``, so this is the only place that knows
how URLs map onto adapters.

Accepted forms::

    None, "", "memory", ":memory:"          in-memory SQLite (fresh per open)
    "sqlite:///relative/app.db"             SQLite file
    "sqlite:////abs/app.db"                 SQLite file, absolute path
    "./app.db", "/var/lib/app.db"           bare path, SQLite file
    "postgresql://user:pw@host:5432/db"     PostgreSQL
    "postgres://...", "postgresql+psycopg2://..."

Any other ``scheme://`` raises ``ConfigError``; nothing falls back to
SQLite silently.

Usage::

    from spruce.core.connection import create_data_source

    source = create_data_source("sqlite:///runs.db")
    conn = source.open()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from spruce.core.adapters import DatabaseAdapter, get_adapter
from spruce.core.errors import ConfigError
from spruce.core.logging import get_logger

logger = get_logger(__name__)

_MEMORY_ALIASES = frozenset({"", "memory", ":memory:"})
_POSTGRES_SCHEMES = frozenset({"postgresql", "postgres"})
# given by the URL authority and path; never accepted as query parameters
_POSTGRES_FIELDS = frozenset(
    {"host", "port", "dbname", "database", "user", "username", "password", "ssl_mode"}
)


def _parse_url(db: str | None) -> tuple[str, str]:
    """Classify ``db`` as ``(kind, target)``.

    ``kind`` is ``"memory"``, ``"sqlite"``, ``"file"``, ``"postgresql"``
    or, for anything unrecognised, the URL's own scheme.
    """
    if db is None or db in _MEMORY_ALIASES:
        return "memory", ":memory:"

    scheme, sep, rest = db.partition("://")
    if not sep:
        return "file", db

    # drop a SQLAlchemy-style driver suffix: postgresql+psycopg2
    base_scheme = scheme.split("+", 1)[0].lower()

    if base_scheme == "sqlite":
        # sqlite:///x → "x", sqlite:////x → "/x"
        path = rest[1:] if rest.startswith("/") else rest
        if path in _MEMORY_ALIASES:
            return "memory", ":memory:"
        return "sqlite", path

    if base_scheme in _POSTGRES_SCHEMES:
        return "postgresql", f"{base_scheme}://{rest}"

    return scheme, db


def _postgres_kwargs(url: str) -> dict[str, Any]:
    """Adapter keywords for a PostgreSQL URL.

    Query parameters are libpq options: ``sslmode`` and ``connect_timeout``
    map onto their adapter fields, the rest reach ``psycopg2.connect``.
    """
    parts = urlsplit(url)
    kwargs: dict[str, Any] = {
        "host": parts.hostname or "localhost",
        "port": parts.port or 5432,
        "database": parts.path.lstrip("/"),
    }
    if parts.username:
        kwargs["username"] = unquote(parts.username)
    if parts.password:
        kwargs["password"] = unquote(parts.password)

    for name, value in parse_qsl(parts.query, keep_blank_values=True):
        if name == "sslmode":
            kwargs["ssl_mode"] = value
        elif name == "connect_timeout":
            try:
                kwargs["connect_timeout"] = int(value)
            except ValueError:
                raise ConfigError(f"Invalid connect_timeout in database URL: {value!r}") from None
        elif name in _POSTGRES_FIELDS:
            raise ConfigError(f"Set {name!r} in the URL itself, not as a query parameter")
        else:
            kwargs[name] = value
    return kwargs


def create_data_source(
    db: str | None = None,
    *,
    data_dir: str | None = None,
    sqlite_timeout: float = 5.0,
    connect_timeout: int = 10,
) -> DatabaseAdapter:
    """Build the data source a URL, path or keyword names.

    Parameters
    ----------
    db:
        Database URL, bare file path, or ``None``/``"memory"``.
    data_dir:
        Base directory for relative SQLite paths.
    sqlite_timeout / connect_timeout:
        Forwarded to the SQLite / PostgreSQL adapter.

    Raises
    ------
    ConfigError
        The URL scheme has no adapter, or a PostgreSQL query parameter
        is invalid.
    """
    kind, target = _parse_url(db)

    if kind == "memory":
        source = get_adapter("sqlite", path=":memory:", timeout=sqlite_timeout)

    elif kind in ("sqlite", "file"):
        path = Path(target)
        if data_dir and not path.is_absolute():
            path = Path(data_dir) / path
        path.parent.mkdir(parents=True, exist_ok=True)
        source = get_adapter("sqlite", path=str(path.resolve()), timeout=sqlite_timeout)

    elif kind == "postgresql":
        kwargs = _postgres_kwargs(target)
        # a connect_timeout in the URL wins over the keyword
        kwargs.setdefault("connect_timeout", connect_timeout)
        source = get_adapter("postgresql", **kwargs)

    else:
        raise ConfigError(f"Unsupported database URL scheme: {kind!r}").with_context(
            url_scheme=kind
        )

    logger.debug("data_source_created", kind=kind, source=repr(source))
    return source


__all__ = [
    "create_data_source",
]
