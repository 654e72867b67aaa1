"""couchkit: local attachment staging and deferred query directives for CouchDB."""

from .core.exceptions import (
    CouchKitError,
    CouchRequestError,
    InvalidArgumentError,
    NotFoundError,
    UnsupportedError,
)
from .query.deferred import DeferredQuery, DocumentQuerySource
from .types.attachments import AttachmentRecord, AttachmentStage

__all__ = [
    "AttachmentRecord",
    "AttachmentStage",
    "DeferredQuery",
    "DocumentQuerySource",
    "CouchKitError",
    "CouchRequestError",
    "InvalidArgumentError",
    "NotFoundError",
    "UnsupportedError",
]

__version__ = "0.1.0"
