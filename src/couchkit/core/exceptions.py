"""Exception hierarchy for couchkit.

Every error raised by the staging engine, the directive builder and the HTTP
client derives from ``CouchKitError``. The concrete classes also inherit from
the closest builtin so callers can catch ``ValueError`` or ``LookupError``
without knowing about couchkit.
"""

from typing import Optional


class CouchKitError(Exception):
    """Base class for couchkit errors."""

    def __init__(self, message: str, argument: Optional[str] = None):
        self.message = message
        self.argument = argument
        super().__init__(self.message)


class InvalidArgumentError(CouchKitError, ValueError):
    """Raised when caller input is missing or malformed."""


class NotFoundError(CouchKitError, LookupError):
    """Raised when a lookup key or a local file does not exist."""

    def __str__(self) -> str:
        # LookupError subclasses would otherwise render like KeyError
        return self.message


class UnsupportedError(CouchKitError, NotImplementedError):
    """Raised when a query chain is executed against a source that cannot run it."""


class CouchRequestError(CouchKitError):
    """Raised when CouchDB answers a request with an error status."""

    def __init__(
        self,
        status: int,
        error: Optional[str] = None,
        reason: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status = status
        self.error = error
        self.reason = reason
        self.url = url
        message = f"CouchDB request failed with status {status}"
        if error:
            message += f": {error}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
