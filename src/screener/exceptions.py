"""Custom exceptions for the funding screener.

The pure computation modules never raise: missing or insufficient input is
returned as None. These exceptions belong to the fetch and API layers.
"""


class ScreenerError(Exception):
    """Base exception for all screener errors."""


class DataSourceError(ScreenerError):
    """Raised when the row source (PostgREST) returns an error response."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class FetchTimeoutError(ScreenerError):
    """Raised when a request timed out on every retry attempt."""


class InvalidQueryError(ScreenerError):
    """Raised when API query parameters cannot be interpreted."""
