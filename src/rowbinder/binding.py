"""
Binding engine: maps result-set columns onto setter methods of a target type.

A column named `number` binds to a method `setNumber` taking exactly one
argument whose annotation names one of the supported value kinds. Discovery
runs once per (target type, column set) and the resulting plan is cached by
a BindingRegistry, so later rows only pay for the getter and setter calls.
"""
import inspect
import logging
import threading
import typing
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Self, TypeVar

import cachetools
from rowbinder.exceptions import InvocationError, PlanMismatchError
from rowbinder.types import Cursor, ValueKind

logger = logging.getLogger(__name__)

T = TypeVar('T')

__all__ = [
    'setter_name',
    'find_setter',
    'build_plan',
    'bind_row',
    'get_registry',
    'BindingEntry',
    'BindingPlan',
    'BindingRegistry',
    'Builder',
]


def setter_name(column: str) -> str:
    """Synthesize the setter name for a column.

    >>> setter_name('number')
    'setNumber'
    >>> setter_name('_id')
    'set_id'
    """
    return 'set' + column[:1].upper() + column[1:]


def method_parameters(target_type: type, name: str) -> list[inspect.Parameter] | None:
    """Return the parameters of method `name` on `target_type`, excluding
    the implicit instance/class argument.

    Returns None when the attribute is missing or is not a method.
    """
    raw = inspect.getattr_static(target_type, name, None)
    if isinstance(raw, staticmethod):
        func, skip = raw.__func__, 0
    elif isinstance(raw, classmethod):
        func, skip = raw.__func__, 1
    elif inspect.isfunction(raw):
        func, skip = raw, 1
    else:
        return None
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return None
    return params[skip:]


def _resolve_annotation(target_type: type, name: str, param: inspect.Parameter) -> Any:
    func = getattr(target_type, name)
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError):
        # unresolvable forward reference, fall back to the raw annotation
        return param.annotation
    return hints.get(param.name)


@dataclass(frozen=True)
class BindingEntry:
    """One bound column: the setter to call and the kind of value it takes."""
    name: str
    kind: ValueKind
    descriptor: Any

    def invoke(self, instance: Any, value: Any) -> None:
        self.descriptor.__get__(instance, type(instance))(value)


def find_setter(target_type: type, column: str) -> BindingEntry | None:
    """Find the setter bound to `column`, or None when the target ignores it.

    Eligible setters take exactly one positional argument. The argument's
    annotation is matched against the value kinds in probe order and the
    first kind that matches wins.
    """
    name = setter_name(column)
    params = method_parameters(target_type, name)
    if params is None or len(params) != 1:
        return None
    param = params[0]
    if param.kind not in {inspect.Parameter.POSITIONAL_ONLY,
                          inspect.Parameter.POSITIONAL_OR_KEYWORD}:
        return None
    annotation = _resolve_annotation(target_type, name, param)
    kind = ValueKind.for_annotation(annotation)
    if kind is None:
        logger.debug(f'{target_type.__name__}.{name} has no supported argument kind')
        return None
    return BindingEntry(name, kind, inspect.getattr_static(target_type, name))


@dataclass(frozen=True)
class BindingPlan:
    """Per-column dispatch table for one target type and one column set.

    `entries[i]` is None when column `i` has no setter on the target type.
    """
    target_type: type
    columns: tuple[str, ...]
    entries: tuple[BindingEntry | None, ...]

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def bound_columns(self) -> list[str]:
        """Names of the columns that have a setter."""
        return [col for col, entry in zip(self.columns, self.entries) if entry is not None]

    def check(self, columns: Sequence[str]) -> None:
        """Refuse a cursor whose column set differs from the one planned for."""
        if tuple(columns) != self.columns:
            raise PlanMismatchError(
                f'Plan for {self.target_type.__name__} was built for columns '
                f'{list(self.columns)}, cursor has {list(columns)}'
            )

    def apply(self, cursor: Cursor, instance: T) -> T:
        """Copy the current row of `cursor` into `instance`.

        Null cells and unbound columns leave the instance untouched.
        """
        self.check(cursor.column_names())
        for index, entry in enumerate(self.entries):
            if entry is None or cursor.is_null(index):
                continue
            try:
                entry.invoke(instance, entry.kind.read(cursor, index))
            except Exception as err:
                raise InvocationError(
                    f'Failed to bind column {self.columns[index]!r} via '
                    f'{self.target_type.__name__}.{entry.name}: {err}'
                ) from err
        return instance


def build_plan(target_type: type, columns: Sequence[str]) -> BindingPlan:
    """Introspect `target_type` for every column. Uncached."""
    columns = tuple(columns)
    entries = tuple(find_setter(target_type, col) for col in columns)
    for col, entry in zip(columns, entries):
        if entry is not None:
            logger.debug(f'Bound {target_type.__name__}.{entry.name} to {col!r} as {entry.kind.name}')
    return BindingPlan(target_type, columns, entries)


class BindingRegistry:
    """Cache of binding plans keyed by target type and column set.

    Lookups and builds are serialized by a lock, so one registry may be shared
    by iterators on different threads. Built plans are immutable.
    """

    _instance = None
    _instance_lock = threading.Lock()

    def __init__(self, maxsize: int = 128) -> None:
        self._plans: cachetools.LRUCache = cachetools.LRUCache(maxsize=maxsize)
        self._lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> Self:
        """Get the process-wide default registry."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_or_build_plan(self, target_type: type, columns: Sequence[str]) -> BindingPlan:
        """Return the cached plan for `target_type` over `columns`, building it on a miss.
        """
        key = (target_type, tuple(columns))
        with self._lock:
            plan = self._plans.get(key)
            if plan is not None:
                logger.debug(f'Plan cache hit for {target_type.__name__}')
                return plan
            logger.debug(f'Plan cache miss for {target_type.__name__}')
            plan = build_plan(target_type, key[1])
            self._plans[key] = plan
            return plan

    def __contains__(self, key: tuple[type, Sequence[str]]) -> bool:
        target_type, columns = key
        with self._lock:
            return (target_type, tuple(columns)) in self._plans

    def __len__(self) -> int:
        with self._lock:
            return len(self._plans)

    def clear(self) -> None:
        """Drop every cached plan."""
        with self._lock:
            self._plans.clear()


def get_registry() -> BindingRegistry:
    """Get the process-wide default registry."""
    return BindingRegistry.get_instance()


def bind_row(cursor: Cursor, instance: T, registry: BindingRegistry | None = None) -> T:
    """Populate `instance` from the row `cursor` is positioned on."""
    registry = registry if registry is not None else get_registry()
    plan = registry.get_or_build_plan(type(instance), cursor.column_names())
    return plan.apply(cursor, instance)


class Builder:
    """Mixin for target types that load themselves from a cursor row.

    Here's a small class storing the number and time of a phone call, bound
    from a source exposing `number` and `date` columns:

        class Call(Builder):
            number = None
            date = None

            def setNumber(self, number: str):
                self.number = number

            def setDate(self, date: Long):
                self.date = date

        call = Call.from_cursor(cursor)  # cursor positioned on a row
    """

    def load(self, cursor: Cursor, registry: BindingRegistry | None = None) -> Self:
        """Fill this object from the current row of `cursor`."""
        return bind_row(cursor, self, registry)

    @classmethod
    def from_cursor(cls, cursor: Cursor, registry: BindingRegistry | None = None) -> Self:
        """Construct with no arguments, then load from the current row."""
        return cls().load(cursor, registry)
