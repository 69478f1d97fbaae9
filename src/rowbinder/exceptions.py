"""
Row binding exception classes.
"""


class BindingError(Exception):
    """Base class for all rowbinder errors.
    """


class ConfigurationError(BindingError):
    """Target type cannot be used for the requested iteration mode.
    """


class InvocationError(BindingError):
    """A setter failed, or a cell could not be read as the declared kind.
    """


class UnsupportedOperationError(BindingError):
    """Operation is not supported by a forward-only reader.
    """


class PlanMismatchError(BindingError):
    """Binding plan applied to a cursor with a different column set.
    """


class SourceError(BindingError):
    """Error raised by a tabular data source.
    """


class SourceConnectionError(SourceError):
    """Error establishing a connection to a data source.
    """
