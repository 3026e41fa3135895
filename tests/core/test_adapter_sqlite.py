"""Tests for ``spruce.core.adapters.sqlite`` — SQLite adapter and connection wrapper."""

from __future__ import annotations

import sqlite3

import pytest

from spruce.core.adapters.sqlite import SQLiteAdapter, SqliteConnection
from spruce.core.adapters.types import DatabaseType
from spruce.core.errors import DatabaseConnectionError
from spruce.core.protocols import Connection, DataSource


class TestSQLiteAdapterInit:
    def test_defaults(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type == DatabaseType.SQLITE
        assert adapter.config.path == ":memory:"
        assert adapter.config.timeout == 5.0
        assert adapter.config.readonly is False

    def test_satisfies_data_source_protocol(self):
        assert isinstance(SQLiteAdapter(), DataSource)

    def test_repr(self):
        assert repr(SQLiteAdapter("app.db")) == "SQLiteAdapter('app.db')"


class TestSQLiteAdapterOpen:
    def test_open_returns_autocommit_connection(self):
        conn = SQLiteAdapter().open()
        try:
            assert isinstance(conn, SqliteConnection)
            assert isinstance(conn, Connection)
            assert conn.autocommit is True
        finally:
            conn.close()

    def test_every_open_is_a_new_connection(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "shared.db"))
        first, second = adapter.open(), adapter.open()
        try:
            assert first is not second
            first.cursor().execute("CREATE TABLE t (x INTEGER)")
            first.cursor().execute("INSERT INTO t VALUES (1)")
            cursor = second.cursor()
            cursor.execute("SELECT x FROM t")
            assert cursor.fetchone() == (1,)
        finally:
            first.close()
            second.close()

    def test_foreign_keys_enabled(self):
        conn = SQLiteAdapter().open()
        try:
            assert conn.raw.execute("PRAGMA foreign_keys").fetchone() == (1,)
        finally:
            conn.close()

    def test_readonly(self, tmp_path):
        path = str(tmp_path / "ro.db")
        writer = SQLiteAdapter(path).open()
        writer.cursor().execute("CREATE TABLE t (x INTEGER)")
        writer.close()

        conn = SQLiteAdapter(path, readonly=True).open()
        try:
            with pytest.raises(sqlite3.OperationalError):
                conn.cursor().execute("INSERT INTO t VALUES (1)")
        finally:
            conn.close()

    def test_open_failure(self, tmp_path):
        adapter = SQLiteAdapter(str(tmp_path / "missing-dir" / "app.db"))
        with pytest.raises(DatabaseConnectionError, match="Failed to connect to sqlite"):
            adapter.open()


class TestSqliteConnectionAutocommit:
    @pytest.fixture
    def pair(self, tmp_path):
        path = str(tmp_path / "tx.db")
        adapter = SQLiteAdapter(path)
        setup = adapter.open()
        setup.cursor().execute("CREATE TABLE t (x INTEGER)")
        setup.close()
        conn, observer = adapter.open(), adapter.open()
        yield conn, observer
        conn.close()
        observer.close()

    @staticmethod
    def _rows(conn):
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM t")
        return cursor.fetchone()[0]

    def test_disable_begins_transaction(self, pair):
        conn, observer = pair
        conn.autocommit = False
        assert conn.raw.in_transaction is True
        conn.cursor().execute("INSERT INTO t VALUES (1)")
        assert self._rows(observer) == 0

    def test_commit_starts_next_transaction(self, pair):
        conn, observer = pair
        conn.autocommit = False
        conn.cursor().execute("INSERT INTO t VALUES (1)")
        conn.commit()
        assert self._rows(observer) == 1
        assert conn.raw.in_transaction is True

    def test_rollback_discards(self, pair):
        conn, observer = pair
        conn.autocommit = False
        conn.cursor().execute("INSERT INTO t VALUES (1)")
        conn.rollback()
        conn.autocommit = True
        assert self._rows(conn) == 0
        assert conn.raw.in_transaction is False

    def test_enable_commits_pending(self, pair):
        conn, observer = pair
        conn.autocommit = False
        conn.cursor().execute("INSERT INTO t VALUES (1)")
        conn.autocommit = True
        assert self._rows(observer) == 1

    def test_setting_same_value_is_noop(self, pair):
        conn, _ = pair
        conn.autocommit = True
        assert conn.raw.in_transaction is False
