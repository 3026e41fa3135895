"""Tests for ``spruce.core.adapters.registry`` — adapter lookup by name."""

from __future__ import annotations

import pytest

from spruce.core.adapters.base import DatabaseAdapter
from spruce.core.adapters.postgresql import PostgreSQLAdapter
from spruce.core.adapters.registry import AdapterRegistry, adapter_registry, get_adapter
from spruce.core.adapters.sqlite import SQLiteAdapter, SqliteConnection
from spruce.core.adapters.types import DatabaseConfig, DatabaseType
from spruce.core.errors import ConfigError


class MemoryAdapter(DatabaseAdapter):
    def __init__(self, **kwargs):
        super().__init__(DatabaseConfig(path=":memory:"))

    def _connect(self):
        import sqlite3

        return SqliteConnection(sqlite3.connect(":memory:"))


class TestAdapterRegistry:
    def test_defaults(self):
        assert AdapterRegistry().list_adapters() == ["postgres", "postgresql", "sqlite"]

    def test_create_sqlite(self):
        adapter = AdapterRegistry().create("SQLite", path="app.db")
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.config.path == "app.db"

    def test_postgres_alias(self):
        assert isinstance(AdapterRegistry().create("postgres"), PostgreSQLAdapter)

    def test_unknown(self):
        with pytest.raises(ConfigError, match="Unknown database adapter: oracle") as exc_info:
            AdapterRegistry().create("oracle")
        assert exc_info.value.context.metadata["available"] == ["postgres", "postgresql", "sqlite"]

    def test_contains(self):
        registry = AdapterRegistry()
        assert "SQLITE" in registry
        assert "oracle" not in registry
        assert 42 not in registry

    def test_register_custom(self):
        registry = AdapterRegistry()
        registry.register("Memory", MemoryAdapter)
        assert "memory" in registry.list_adapters()
        conn = registry.create("memory").open()
        conn.close()


class TestGetAdapter:
    def test_by_enum(self):
        assert isinstance(get_adapter(DatabaseType.SQLITE), SQLiteAdapter)

    def test_by_name(self):
        adapter = get_adapter("postgresql", host="db", database="app")
        assert adapter.config.host == "db"

    def test_uses_global_registry(self):
        assert "sqlite" in adapter_registry.list_adapters()


class TestDatabaseConfig:
    def test_sqlite_connection_string(self):
        assert DatabaseConfig(path="app.db").to_connection_string() == "app.db"
        assert DatabaseConfig().to_connection_string() == ":memory:"

    def test_postgres_connection_string(self):
        config = DatabaseConfig(
            db_type=DatabaseType.POSTGRESQL,
            host="db",
            database="app",
            username="u",
            password="p",
        )
        assert config.to_connection_string() == "postgresql://u:p@db:5432/app"

    def test_describe_hides_credentials(self):
        config = DatabaseConfig(db_type=DatabaseType.POSTGRESQL, host="db", database="app", password="p")
        assert config.describe() == "db:5432/app"
        assert DatabaseConfig(path="app.db").describe() == "app.db"

    def test_postgres_connection_string_without_credentials(self):
        config = DatabaseConfig(db_type=DatabaseType.POSTGRESQL, database="app")
        assert config.to_connection_string() == "postgresql://localhost:5432/app"
