"""Data layer error hierarchy."""

from wren.errors import WrenError


class DataError(WrenError):
    """Base for all wren.data errors.

    Raised directly for misuse: executing an unbound query, inserting or
    updating with no data, or an operator outside the allowed set.
    """


class DriverNotInstalledError(DataError):
    """Raised when the database URL names a driver wren does not bundle."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """Raised when a SQL statement fails. Message is ``Query failed: ...``."""
