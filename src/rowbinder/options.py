from dataclasses import dataclass

from libb import ConfigOptions, scriptname

__all__ = ['SourceOptions', 'SUPPORTED_DRIVERS']

SUPPORTED_DRIVERS = ('postgresql', 'sqlite')

_REQUIRED = {
    'postgresql': ('hostname', 'username', 'database'),
    'sqlite': ('database',),
}


@dataclass
class SourceOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `sqlite`
    """
    drivername: str = 'sqlite'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    appname: str = None

    def __post_init__(self):
        if self.drivername not in SUPPORTED_DRIVERS:
            raise ValueError(f'drivername must be one of: {list(SUPPORTED_DRIVERS)}')
        missing = [name for name in _REQUIRED[self.drivername] if not getattr(self, name)]
        if missing:
            raise ValueError(f'{self.drivername} requires: {", ".join(missing)}')
        self.appname = self.appname or scriptname() or 'python_console'
