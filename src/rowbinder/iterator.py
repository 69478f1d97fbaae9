"""
Forward-only iteration over a cursor, yielding one bound instance per row.

RowIterator owns the cursor it is given: the cursor is closed exactly once,
when the last row has been consumed, when the iterator is closed explicitly
or leaves a `with` block, or when an abandoned iterator is garbage-collected.

    with RowIterator.from_query(Call, source, 'select number, date from calls') as calls:
        for call in calls:
            print(call.number, call.date)
"""
import inspect
import logging
import weakref
from collections.abc import Iterator
from typing import Any, Generic, Self, TypeVar

from rowbinder.binding import BindingRegistry, get_registry, method_parameters
from rowbinder.exceptions import ConfigurationError, InvocationError
from rowbinder.exceptions import UnsupportedOperationError
from rowbinder.types import Cursor, Resettable

logger = logging.getLogger(__name__)

T = TypeVar('T')

__all__ = ['RowIterator', 'check_target']


def _release_cursor(cursor: Cursor) -> None:
    logger.debug(f'Closing cursor {cursor!r}')
    cursor.close()


def _required(params: list[inspect.Parameter]) -> list[inspect.Parameter]:
    return [p for p in params
            if p.default is inspect.Parameter.empty
            and p.kind not in {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}]


def check_target(target_type: type, reuse: bool = False) -> None:
    """Verify `target_type` can be instantiated per row, and reset if reused.

    Raises ConfigurationError otherwise.
    """
    if not isinstance(target_type, type):
        raise ConfigurationError(f'{target_type!r} is not a class')
    if inspect.isabstract(target_type):
        raise ConfigurationError(f'{target_type.__name__} is abstract')
    try:
        signature = inspect.signature(target_type)
    except ValueError:
        # builtins without introspectable signatures
        signature = None
    if signature is not None and _required(list(signature.parameters.values())):
        raise ConfigurationError(
            f'{target_type.__name__} cannot be constructed without arguments')
    if not reuse:
        return
    if not issubclass(target_type, Resettable):
        raise ConfigurationError(
            f'{target_type.__name__} must define reset() to be reused across rows')
    params = method_parameters(target_type, 'reset')
    if params is None or _required(params):
        raise ConfigurationError(
            f'{target_type.__name__}.reset() must take no arguments')


class RowIterator(Generic[T]):
    """Lazily bind each row of a cursor to an instance of `target_type`.

    Args:
        target_type: Class constructed with no arguments for each row
        cursor: Open cursor, or None for an empty result
        reuse: Refill a single instance, calling its reset() between rows.
            The returned object is the same on every call and must not be
            kept past the next one.
        registry: Plan cache, the process-wide default when omitted
    """

    def __init__(self, target_type: type[T], cursor: Cursor | None,
                 reuse: bool = False, registry: BindingRegistry | None = None) -> None:
        check_target(target_type, reuse)
        self.target_type = target_type
        self.reuse = reuse
        self._registry = registry if registry is not None else get_registry()
        self._plan = None
        self._cursor = cursor
        self._instance: T | None = None
        self._more = False
        self._finalizer = None
        if cursor is None:
            return
        self._finalizer = weakref.finalize(self, _release_cursor, cursor)
        try:
            self._more = bool(cursor.move_to_first())
        except BaseException:
            self.close()
            raise
        if not self._more:
            self.close()

    @classmethod
    def from_query(cls, target_type: type[T], source: Any, sql: str, *args: Any,
                   reuse: bool = False, registry: BindingRegistry | None = None) -> Self:
        """Run `sql` against `source` and iterate over the result.
        """
        check_target(target_type, reuse)
        cursor = source.query(sql, *args)
        return cls(target_type, cursor, reuse=reuse, registry=registry)

    def __iter__(self) -> Iterator[T]:
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._finalizer is None or not self._finalizer.alive

    def has_next(self) -> bool:
        """True iff a row is positioned and not yet consumed."""
        return self._more

    def __next__(self) -> T:
        if not self._more:
            raise StopIteration
        cursor = self._cursor
        if self._plan is None:
            self._plan = self._registry.get_or_build_plan(self.target_type, cursor.column_names())
        instance = self._prepare_instance()
        self._plan.apply(cursor, instance)
        self._more = bool(cursor.move_to_next())
        if not self._more:
            self.close()
        return instance

    next = __next__

    def _prepare_instance(self) -> T:
        if self.reuse and self._instance is not None:
            try:
                self._instance.reset()
            except Exception as err:
                raise InvocationError(
                    f'{self.target_type.__name__}.reset() failed: {err}') from err
            return self._instance
        try:
            instance = self.target_type()
        except Exception as err:
            raise InvocationError(
                f'Failed to construct {self.target_type.__name__}: {err}') from err
        if self.reuse:
            self._instance = instance
        return instance

    def remove(self) -> None:
        """Not supported: rows cannot be removed through a reader."""
        raise UnsupportedOperationError(
            'RowIterator does not support removal from the data source')

    def close(self) -> None:
        """Release the cursor. Safe to call more than once."""
        self._more = False
        if self._finalizer is not None:
            self._finalizer()
