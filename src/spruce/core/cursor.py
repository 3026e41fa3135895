"""Forward-only positioned cursor over one query's rows.

``ResultCursor`` wraps a DB-API cursor and keeps a current row:
``advance()`` moves to the next row, and column reads (by 0-based
position or by case-insensitive name) address the current row.
Unpackers receive the cursor itself, positioned on a row.

Rows are fetched one at a time, so counting or unpacking never
materialises more than the current row.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from spruce.core.errors import CursorStateError, engine_errors
from spruce.core.protocols import Cursor

Column = int | str


class ResultCursor:
    """Positioned row cursor returned by ``DBContext.query`` and ``DBStatement.query``."""

    def __init__(self, cursor: Cursor, *, sql: str | None = None) -> None:
        self._cursor = cursor
        self._sql = sql
        self._row: Sequence[Any] | None = None
        self._exhausted = False
        self._closed = False

        description = cursor.description or ()
        self._columns = [str(d[0]) for d in description]
        self._index: dict[str, int] = {}
        for i, name in enumerate(self._columns):
            self._index.setdefault(name.lower(), i)

    @property
    def columns(self) -> list[str]:
        """Column names in result order."""
        return list(self._columns)

    @property
    def sql(self) -> str | None:
        return self._sql

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def positioned(self) -> bool:
        """True while the cursor sits on a row."""
        return self._row is not None

    def advance(self) -> bool:
        """Move to the next row. Returns False once the rows run out."""
        if self._closed:
            raise CursorStateError("Cursor is closed").with_context(sql=self._sql)
        if self._exhausted:
            return False
        with engine_errors("fetch", self._sql):
            row = self._cursor.fetchone()
        if row is None:
            self._row = None
            self._exhausted = True
            return False
        self._row = row
        return True

    @property
    def row(self) -> tuple[Any, ...]:
        """All values of the current row."""
        return tuple(self._current())

    def column_index(self, column: Column) -> int:
        """Resolve a column name or 0-based position to a position."""
        if isinstance(column, int):
            if not 0 <= column < len(self._columns):
                raise IndexError(f"Column index {column} out of range ({len(self._columns)} columns)")
            return column
        try:
            return self._index[column.lower()]
        except KeyError:
            raise KeyError(f"No column named {column!r} in result {self._columns}") from None

    def get(self, column: Column, type_: Callable[[Any], Any] | None = None) -> Any:
        """Read one column of the current row, optionally converted with ``type_``.

        ``None`` is returned as-is, never passed to ``type_``.
        """
        value = self._current()[self.column_index(column)]
        if type_ is not None and value is not None:
            return type_(value)
        return value

    def __getitem__(self, column: Column) -> Any:
        return self.get(column)

    def as_dict(self) -> dict[str, Any]:
        """Current row as a column name → value mapping."""
        return dict(zip(self._columns, self._current(), strict=False))

    def close(self) -> None:
        """Release the driver cursor. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._row = None
        with engine_errors("close cursor", self._sql):
            self._cursor.close()

    def _current(self) -> Sequence[Any]:
        if self._closed:
            raise CursorStateError("Cursor is closed").with_context(sql=self._sql)
        if self._row is None:
            raise CursorStateError("Cursor is not positioned on a row; call advance() first").with_context(
                sql=self._sql
            )
        return self._row

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ResultCursor({self._sql!r}, {state})"


__all__ = [
    "Column",
    "ResultCursor",
]
