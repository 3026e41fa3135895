"""Row unpackers: callables turning one positioned row into a value.

An unpacker is any ``Callable[[ResultCursor], T]``. It is invoked once
per row, in cursor order, and must not advance the cursor. This module
provides the common ones and the coercion used by the ``query_*``
helpers, which accept a column position, a column name or a full
unpacker interchangeably.

Examples:
    >>> names = stmt.query_list("name")
    >>> totals = stmt.query_map("account_id", column("balance", Decimal))
    >>> people = stmt.query_list(lambda r: Person(r["id"], r["name"]))
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from spruce.core.cursor import Column, ResultCursor

T = TypeVar("T")

Unpacker = Callable[[ResultCursor], T]


def column(key: Column, type_: Callable[[Any], Any] | None = None) -> Unpacker[Any]:
    """Unpacker reading one column (0-based position or name), optionally converted."""

    def unpack(row: ResultCursor) -> Any:
        return row.get(key, type_)

    unpack.__name__ = f"column_{key}"
    return unpack


def as_dict(row: ResultCursor) -> dict[str, Any]:
    """Unpacker returning the whole row as a column name → value dict."""
    return row.as_dict()


def as_tuple(row: ResultCursor) -> tuple[Any, ...]:
    """Unpacker returning the whole row as a tuple."""
    return row.row


def as_unpacker(
    spec: Column | Unpacker[Any],
    type_: Callable[[Any], Any] | None = None,
) -> Unpacker[Any]:
    """Coerce a column position, column name or unpacker into an unpacker."""
    if isinstance(spec, (int, str)):
        return column(spec, type_)
    if callable(spec):
        if type_ is not None:
            raise TypeError("type_ only applies to column positions or names, not unpackers")
        return spec
    raise TypeError(f"Expected a column position, column name or unpacker, got {spec!r}")


__all__ = [
    "Unpacker",
    "column",
    "as_dict",
    "as_tuple",
    "as_unpacker",
]
