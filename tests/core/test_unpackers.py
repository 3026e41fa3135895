"""Tests for spruce.core.unpackers."""

from decimal import Decimal

import pytest

from spruce.core.unpackers import as_dict, as_tuple, as_unpacker, column


class TestBuiltinUnpackers:
    def test_column_by_name_and_type(self, accounts_db):
        with accounts_db.get_context() as ctx:
            results = ctx.query("SELECT owner, balance FROM accounts WHERE id = ?", 1)
            results.advance()
            assert column("owner")(results) == "alice"
            assert column(1, Decimal)(results) == Decimal(100)

    def test_as_dict_and_as_tuple(self, accounts_db):
        with accounts_db.get_context() as ctx:
            results = ctx.query("SELECT id, owner FROM accounts WHERE id = ?", 2)
            results.advance()
            assert as_dict(results) == {"id": 2, "owner": "bob"}
            assert as_tuple(results) == (2, "bob")

    def test_unpacker_does_not_advance(self, accounts_db):
        with accounts_db.get_context() as ctx:
            results = ctx.query("SELECT id FROM accounts ORDER BY id")
            results.advance()
            column(0)(results)
            column(0)(results)
            assert results.get(0) == 1


class TestAsUnpacker:
    def test_position(self, accounts_db):
        with accounts_db.get_context() as ctx:
            results = ctx.query("SELECT id, owner FROM accounts WHERE id = 3")
            results.advance()
            assert as_unpacker(1)(results) == "carol"
            assert as_unpacker("id", str)(results) == "3"

    def test_callable_passes_through(self):
        def unpacker(row):
            return row

        assert as_unpacker(unpacker) is unpacker

    def test_type_with_callable_rejected(self):
        with pytest.raises(TypeError, match="type_"):
            as_unpacker(as_dict, int)

    def test_invalid_spec(self):
        with pytest.raises(TypeError):
            as_unpacker(1.5)
