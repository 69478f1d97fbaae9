"""
Query-backed data source built on SQLAlchemy.

`connect()` opens a connection described by SourceOptions and returns a
Source, whose `query()` produces cursors RowIterator can consume:

    with connect({'drivername': 'sqlite', 'database': 'calls.db'}) as source:
        for call in RowIterator.from_query(Call, source, 'select * from calls'):
            ...
"""
import logging
from collections.abc import Callable
from typing import Any, Self

import sqlalchemy as sa
from rowbinder.cursor import ResultCursor
from rowbinder.exceptions import SourceConnectionError
from rowbinder.options import SourceOptions
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = ['Source', 'connect', 'create_url_from_options']

logger = logging.getLogger(__name__)


URL_DRIVERS = {
    'sqlite': 'sqlite',
    'postgresql': 'postgresql+psycopg',
}


def create_url_from_options(options: SourceOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Build the SQLAlchemy URL for `options`. Server settings are only
    passed for postgresql.
    """
    if options.drivername not in URL_DRIVERS:
        raise ValueError(f'Unsupported driver: {options.drivername}')
    drivername = URL_DRIVERS[options.drivername]
    if options.drivername == 'sqlite':
        return url_creator(drivername=drivername, database=options.database)
    query = {'application_name': options.appname}
    if options.timeout:
        query['connect_timeout'] = str(options.timeout)
    return url_creator(drivername=drivername, username=options.username,
                       password=options.password, host=options.hostname,
                       port=options.port or None, database=options.database,
                       query=query)


class Source:
    """Tabular data source over a single SQLAlchemy connection.
    """

    def __init__(self, connection: sa.Connection, options: SourceOptions) -> None:
        self.connection = connection
        self.options = options

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def dialect(self) -> str:
        return self.connection.dialect.name

    def _standardize_sql(self, sql: str) -> str:
        if self.dialect == 'sqlite':
            return sql.replace('%s', '?')
        return sql

    @staticmethod
    def _params(args: tuple) -> tuple | None:
        if not args:
            return None
        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            return tuple(args[0])
        return tuple(args)

    def _run(self, sql: str, args: tuple) -> sa.CursorResult:
        sql = self._standardize_sql(sql)
        logger.debug(f'SQL:\n{sql}\nargs: {args}')
        return self.connection.exec_driver_sql(sql, self._params(args))

    def execute(self, sql: str, *args: Any) -> int:
        """Execute a statement, commit, and return the affected row count.
        """
        result = self._run(sql, args)
        rowcount = result.rowcount
        result.close()
        self.connection.commit()
        return rowcount

    def query(self, sql: str, *args: Any) -> ResultCursor | None:
        """Execute a query and return a forward-only cursor over its rows.

        Returns None when the statement produces no result set.
        """
        result = self._run(sql, args)
        if not result.returns_rows:
            result.close()
            return None
        return ResultCursor(result)

    def close(self) -> None:
        """Close the connection and dispose of its engine."""
        engine = self.connection.engine
        self.connection.close()
        engine.dispose()


def _as_options(options: Any, config: Any, **kw: Any) -> SourceOptions:
    if isinstance(options, SourceOptions):
        return options
    return load_options(cls=SourceOptions)(lambda o, c: o)(options, config, **kw)


@load_options(cls=SourceOptions)
def connect(options: SourceOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Source:
    """Open a Source from a SourceOptions object, a dict of options or a
    config name; keyword arguments override individual options.
    """
    options = _as_options(options, config, **kw)
    engine = sa.create_engine(create_url_from_options(options), poolclass=NullPool)
    try:
        connection = engine.connect()
    except (sa.exc.OperationalError, sa.exc.InterfaceError) as err:
        engine.dispose()
        raise SourceConnectionError(f'Could not connect to {options.drivername} '
                                    f'database {options.database!r}') from err
    return Source(connection, options)
