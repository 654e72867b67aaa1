"""CouchDB HTTP client and wire helpers."""

from .couch_client import CouchClient
from .error_handling import ErrorCategory, categorize_error, is_retryable
from .multipart import build_attachments_stub, build_document_body, read_upload_contents, write_multipart

__all__ = [
    "CouchClient",
    "ErrorCategory",
    "categorize_error",
    "is_retryable",
    "build_attachments_stub",
    "build_document_body",
    "read_upload_contents",
    "write_multipart",
]
