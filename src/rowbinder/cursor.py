"""
Cursor implementations satisfying the rowbinder cursor protocol.

- ListCursor: rows held in memory, None meaning null
- ResultCursor: a SQLAlchemy result fetched one row at a time
"""
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from rowbinder.exceptions import SourceError

logger = logging.getLogger(__name__)

__all__ = ['BaseCursor', 'ListCursor', 'ResultCursor']


class BaseCursor:
    """Typed getters and null checks over the row the cursor is positioned on.

    Subclasses provide `column_names()`, the positioning methods and
    `_current_row()`.
    """

    closed: bool = False

    def _current_row(self) -> Sequence[Any]:
        raise NotImplementedError

    def _value(self, index: int) -> Any:
        if self.closed:
            raise SourceError('Cursor is closed')
        row = self._current_row()
        if row is None:
            raise SourceError('Cursor is not positioned on a row')
        return row[index]

    def is_null(self, index: int) -> bool:
        return self._value(index) is None

    def get_int(self, index: int) -> int:
        return int(self._value(index))

    def get_string(self, index: int) -> str:
        return str(self._value(index))

    def get_long(self, index: int) -> int:
        return int(self._value(index))

    def get_float(self, index: int) -> float:
        return float(self._value(index))

    def get_double(self, index: int) -> float:
        return float(self._value(index))

    def get_column_index(self, name: str) -> int:
        """Position of column `name`, ValueError if absent."""
        return list(self.column_names()).index(name)


class ListCursor(BaseCursor):
    """Forward-only cursor over rows held in memory.

        cursor = ListCursor(['number', 'date'], [('555-1234', 100), (None, 200)])
    """

    def __init__(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
        self._columns = tuple(columns)
        self._rows = [tuple(row) for row in rows]
        for row in self._rows:
            if len(row) != len(self._columns):
                raise ValueError(
                    f'Row has {len(row)} values, expected {len(self._columns)}: {row!r}')
        self._position = -1
        self.closed = False

    def __repr__(self) -> str:
        return f'ListCursor(columns={list(self._columns)}, rows={len(self._rows)})'

    def __len__(self) -> int:
        return len(self._rows)

    def column_names(self) -> list[str]:
        return list(self._columns)

    def _current_row(self) -> Sequence[Any] | None:
        if 0 <= self._position < len(self._rows):
            return self._rows[self._position]
        return None

    def move_to_first(self) -> bool:
        if self.closed:
            raise SourceError('Cursor is closed')
        self._position = 0
        return bool(self._rows)

    def move_to_next(self) -> bool:
        if self.closed:
            raise SourceError('Cursor is closed')
        self._position = min(self._position + 1, len(self._rows))
        return self._position < len(self._rows)

    def close(self) -> None:
        self.closed = True


class ResultCursor(BaseCursor):
    """Cursor over a SQLAlchemy CursorResult.

    Rows are fetched one at a time, so the cursor cannot be rewound once it
    has moved past the first row.
    """

    def __init__(self, result: Any) -> None:
        self._result = result
        self._columns = tuple(result.keys())
        self._row = None
        self._started = False
        self.closed = False

    def __repr__(self) -> str:
        return f'ResultCursor(columns={list(self._columns)})'

    def column_names(self) -> list[str]:
        return list(self._columns)

    def _current_row(self) -> Sequence[Any] | None:
        return self._row

    def _fetch(self) -> bool:
        if self.closed:
            raise SourceError('Cursor is closed')
        self._row = self._result.fetchone()
        return self._row is not None

    def move_to_first(self) -> bool:
        if self._started:
            raise SourceError('ResultCursor is forward-only and cannot be rewound')
        self._started = True
        return self._fetch()

    def move_to_next(self) -> bool:
        if not self._started:
            return self.move_to_first()
        if self._row is None:
            return False
        return self._fetch()

    def close(self) -> None:
        if not self.closed:
            self._result.close()
            self.closed = True
