"""Core error types shared by every couchkit component."""

from .exceptions import (
    CouchKitError,
    CouchRequestError,
    InvalidArgumentError,
    NotFoundError,
    UnsupportedError,
)

__all__ = [
    "CouchKitError",
    "CouchRequestError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnsupportedError",
]
