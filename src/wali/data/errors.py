"""Data layer error hierarchy."""

from wali.errors import WaliError


class DataError(WaliError):
    """Base for all wali.data errors."""


class DriverNotInstalledError(DataError):
    """The URL names a database other than SQLite."""

    def __init__(self, scheme: str) -> None:
        super().__init__(
            f"No driver available for {scheme!r} databases. "
            "wali.data supports SQLite URLs: sqlite:///path or sqlite:///:memory:"
        )
        self.scheme = scheme


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """A statement failed, or a builder was given an unsafe identifier.

    ``sql`` holds the failing statement when one was sent to the driver.
    """

    def __init__(self, message: str, sql: str | None = None) -> None:
        super().__init__(message)
        self.sql = sql
