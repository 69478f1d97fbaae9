"""
Value kinds and the structural protocols the binding engine works against.

This module provides:
- ValueKind: the closed set of cell kinds a setter can accept
- Long, Double: annotation markers for the long-integer and double kinds
- Cursor: the forward-only cursor capability set consumed by the core
- Resettable: the capability required by reuse-mode target types
"""
import enum
import types
import typing
from collections.abc import Sequence
from typing import Any, NewType, Protocol, runtime_checkable

Long = NewType('Long', int)
Double = NewType('Double', float)


class ValueKind(enum.Enum):
    """Kind of value read from a cell and handed to a setter.

    Each kind knows the annotation it matches and the cursor getter used to
    read it.
    """
    INTEGER = (int, 'get_int')
    TEXT = (str, 'get_string')
    LONG = (Long, 'get_long')
    FLOAT = (float, 'get_float')
    DOUBLE = (Double, 'get_double')

    def __init__(self, annotation: Any, getter: str) -> None:
        self.annotation = annotation
        self.getter = getter

    def read(self, cursor: 'Cursor', index: int) -> Any:
        """Read cell `index` of the current row with this kind's getter."""
        return getattr(cursor, self.getter)(index)

    @classmethod
    def for_annotation(cls, annotation: Any) -> 'ValueKind | None':
        """Resolve an annotation to a kind, probing in priority order.

        Union annotations match the first member kind in probe order;
        `None` members are ignored.
        """
        if annotation is None:
            return None
        candidates = _union_members(annotation)
        for kind in PROBE_ORDER:
            if any(member is kind.annotation for member in candidates):
                return kind
        return None


PROBE_ORDER: tuple[ValueKind, ...] = (
    ValueKind.INTEGER,
    ValueKind.TEXT,
    ValueKind.LONG,
    ValueKind.FLOAT,
    ValueKind.DOUBLE,
)


def _union_members(annotation: Any) -> tuple[Any, ...]:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return tuple(a for a in typing.get_args(annotation) if a is not type(None))
    return (annotation,)


@runtime_checkable
class Cursor(Protocol):
    """Forward-only cursor over one result set."""

    def column_names(self) -> Sequence[str]: ...

    def move_to_first(self) -> bool: ...

    def move_to_next(self) -> bool: ...

    def is_null(self, index: int) -> bool: ...

    def get_int(self, index: int) -> int: ...

    def get_string(self, index: int) -> str: ...

    def get_long(self, index: int) -> int: ...

    def get_float(self, index: int) -> float: ...

    def get_double(self, index: int) -> float: ...

    def close(self) -> None: ...


@runtime_checkable
class Resettable(Protocol):
    """Target types reused across rows must return to a clean state."""

    def reset(self) -> None: ...
