"""
Bind rows of a forward-only cursor to typed objects.

A column named `number` is delivered to a method `setNumber` on the target
type, read from the cursor as the kind named by the method's annotation.

- RowIterator(Call, cursor): iterate bound instances over an open cursor
- RowIterator.from_query(Call, source, sql, *args): iterate a query result
- bind_row(cursor, instance): bind the current row into an existing object
- connect(options): open a SQLAlchemy-backed Source
"""
__version__ = '0.1.0'

from rowbinder.binding import BindingPlan, BindingRegistry, Builder, bind_row
from rowbinder.binding import get_registry, setter_name
from rowbinder.cursor import ListCursor, ResultCursor
from rowbinder.exceptions import BindingError, ConfigurationError
from rowbinder.exceptions import InvocationError, PlanMismatchError
from rowbinder.exceptions import SourceConnectionError, SourceError
from rowbinder.exceptions import UnsupportedOperationError
from rowbinder.iterator import RowIterator
from rowbinder.options import SourceOptions
from rowbinder.source import Source, connect
from rowbinder.types import Cursor, Double, Long, Resettable, ValueKind

__all__ = [
    'RowIterator',
    'BindingRegistry',
    'BindingPlan',
    'Builder',
    'bind_row',
    'get_registry',
    'setter_name',
    'ListCursor',
    'ResultCursor',
    'Source',
    'SourceOptions',
    'connect',
    'Cursor',
    'Resettable',
    'ValueKind',
    'Long',
    'Double',
    'BindingError',
    'ConfigurationError',
    'InvocationError',
    'PlanMismatchError',
    'SourceError',
    'SourceConnectionError',
    'UnsupportedOperationError',
]
