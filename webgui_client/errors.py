"""
Error taxonomy for the browsing client.

Every failure the client can observe is raised as a subclass of
BrowserError. The session catches them at its operation boundary and
turns them into user-visible notifications.
"""

from typing import Optional


class BrowserError(Exception):
    """Base class for all client-side failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class TransportError(BrowserError):
    """Raised when the backend cannot be reached at all."""

    pass


class BackendError(BrowserError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        """
        Initialize BackendError.

        Args:
            message: The backend-reported error text, or a generic fallback
            status_code: HTTP status of the failed response
        """
        super().__init__(message)
        self.status_code = status_code


class ParseError(BrowserError):
    """Raised when a successful response body is not the declared structure."""

    pass


class IdentityError(BrowserError):
    """Raised when a row cannot be mapped back to a primary key."""

    pass


class NoPrimaryKeyError(IdentityError):
    """Raised when the loaded schema declares no primary-key column."""

    def __init__(self, table_name: Optional[str] = None):
        if table_name:
            message = f"No primary key found for table '{table_name}'"
        else:
            message = "No primary key found for this table"
        super().__init__(message)
        self.table_name = table_name
