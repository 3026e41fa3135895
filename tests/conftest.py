"""
Shared pytest fixtures and configuration for spruce tests.

This module provides:
- Settings cache cleanup for test isolation
- File-backed SQLite databases under tmp_path
- A seeded ``accounts`` table
- Fake data sources for fault injection

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(accounts_db):
        with accounts_db.get_context() as ctx:
            ...
"""

from collections.abc import Generator
from pathlib import Path

import pytest

from spruce.core.database import Database
from spruce.core.settings import clear_settings_cache
from tests._support.fault_injection import FakeDataSource


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests that are not explicitly marked as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Database Fixtures
# =============================================================================


ACCOUNTS_DDL = """
CREATE TABLE accounts (
    id INTEGER PRIMARY KEY,
    owner TEXT NOT NULL,
    balance INTEGER NOT NULL DEFAULT 0
)
"""

ACCOUNTS_ROWS = [
    (1, "alice", 100),
    (2, "bob", 50),
    (3, "carol", 75),
]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of a not-yet-created SQLite file."""
    return tmp_path / "spruce-test.db"


@pytest.fixture
def database(db_path: Path) -> Database:
    """Empty file-backed SQLite database."""
    return Database.from_url(f"sqlite:///{db_path}")


@pytest.fixture
def accounts_db(database: Database) -> Database:
    """Database with a seeded ``accounts`` table."""
    with database.get_context() as ctx:
        ctx.execute(ACCOUNTS_DDL)
        stmt = ctx.prepare("INSERT INTO accounts (id, owner, balance) VALUES (?, ?, ?)")
        for row in ACCOUNTS_ROWS:
            stmt.execute(*row)
    return database


@pytest.fixture
def fake_source() -> FakeDataSource:
    """Fake data source serving two columns and two rows."""
    return FakeDataSource(rows=[(1, "alice"), (2, "bob")], columns=["id", "owner"])


@pytest.fixture
def fake_db(fake_source: FakeDataSource) -> Database:
    """Database backed by ``fake_source``."""
    return Database(fake_source)
