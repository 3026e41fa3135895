"""Tests for ``spruce.core.connection`` — URL → data source."""

from __future__ import annotations

import pytest

from spruce.core.adapters import PostgreSQLAdapter, SQLiteAdapter
from spruce.core.connection import _parse_url, _postgres_kwargs, create_data_source
from spruce.core.errors import ConfigError


class TestParseUrl:
    @pytest.mark.parametrize("url", [None, "", "memory", ":memory:", "sqlite:///", "sqlite:///:memory:"])
    def test_memory(self, url):
        assert _parse_url(url) == ("memory", ":memory:")

    def test_sqlite_url(self):
        assert _parse_url("sqlite:///data/app.db") == ("sqlite", "data/app.db")
        assert _parse_url("sqlite:////var/app.db") == ("sqlite", "/var/app.db")

    def test_bare_path(self):
        assert _parse_url("./app.db") == ("file", "./app.db")

    def test_postgres(self):
        assert _parse_url("postgres://u@h/db") == ("postgresql", "postgres://u@h/db")
        assert _parse_url("postgresql+psycopg2://u@h/db") == ("postgresql", "postgresql://u@h/db")

    def test_unknown_scheme(self):
        assert _parse_url("mysql://h/db") == ("mysql", "mysql://h/db")


class TestPostgresKwargs:
    def test_full_url(self):
        assert _postgres_kwargs("postgresql://app:p%40ss@db:5433/billing") == {
            "host": "db",
            "port": 5433,
            "database": "billing",
            "username": "app",
            "password": "p@ss",
        }

    def test_defaults(self):
        assert _postgres_kwargs("postgresql:///billing") == {
            "host": "localhost",
            "port": 5432,
            "database": "billing",
        }

    def test_query_parameters_forwarded(self):
        kwargs = _postgres_kwargs(
            "postgresql://db/billing?sslmode=require&connect_timeout=3&application_name=ledger"
        )
        assert kwargs["ssl_mode"] == "require"
        assert kwargs["connect_timeout"] == 3
        assert kwargs["application_name"] == "ledger"

    def test_invalid_connect_timeout(self):
        with pytest.raises(ConfigError, match="connect_timeout"):
            _postgres_kwargs("postgresql://db/billing?connect_timeout=soon")

    @pytest.mark.parametrize("name", ["host", "user", "password", "dbname"])
    def test_authority_fields_rejected_as_query_parameters(self, name):
        with pytest.raises(ConfigError, match=name):
            _postgres_kwargs(f"postgresql://db/billing?{name}=x")


class TestCreateDataSource:
    def test_memory(self):
        source = create_data_source()
        assert isinstance(source, SQLiteAdapter)
        assert source.config.path == ":memory:"

    def test_sqlite_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "app.db"
        source = create_data_source(f"sqlite:///{path}", sqlite_timeout=2.0)
        assert path.parent.is_dir()
        assert source.config.path == str(path.resolve())
        assert source.config.timeout == 2.0

    def test_relative_path_uses_data_dir(self, tmp_path):
        source = create_data_source("app.db", data_dir=str(tmp_path))
        assert source.config.path == str((tmp_path / "app.db").resolve())

    def test_postgresql(self):
        source = create_data_source("postgresql://app:secret@db:5432/billing", connect_timeout=4)
        assert isinstance(source, PostgreSQLAdapter)
        assert source.config.host == "db"
        assert source.config.password == "secret"
        assert source.config.connect_timeout == 4

    def test_postgresql_query_string_reaches_config(self):
        source = create_data_source(
            "postgresql://db/billing?sslmode=verify-full&connect_timeout=2&application_name=ledger",
            connect_timeout=9,
        )
        assert source.config.ssl_mode == "verify-full"
        assert source.config.connect_timeout == 2
        assert source.config.options == {"application_name": "ledger"}

    def test_unsupported_scheme(self):
        with pytest.raises(ConfigError, match="Unsupported database URL scheme") as exc_info:
            create_data_source("mysql://db/app")
        assert exc_info.value.context.metadata["url_scheme"] == "mysql"
