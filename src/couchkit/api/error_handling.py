"""Error handling and categorization for CouchDB requests."""

import asyncio
import json

import aiohttp

from couchkit.config.api import ErrorCategory
from couchkit.core.exceptions import CouchRequestError

# Client errors worth another attempt
RETRYABLE_CLIENT_STATUSES = (408, 429)


def _categorize_status(status: int) -> ErrorCategory:
    if 400 <= status < 500:
        return ErrorCategory.CLIENT
    elif 500 <= status < 600:
        return ErrorCategory.SERVER
    return ErrorCategory.UNKNOWN


def categorize_error(exception: Exception) -> ErrorCategory:
    """Categorize an exception into error types for better handling."""
    if isinstance(exception, asyncio.TimeoutError):
        return ErrorCategory.TIMEOUT
    elif isinstance(exception, CouchRequestError):
        return _categorize_status(exception.status)
    elif isinstance(exception, aiohttp.ClientConnectorError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, aiohttp.ClientResponseError):
        return _categorize_status(exception.status)
    elif isinstance(exception, aiohttp.ClientError):
        return ErrorCategory.NETWORK
    elif isinstance(exception, (json.JSONDecodeError, ValueError)):
        return ErrorCategory.DATA
    else:
        return ErrorCategory.UNKNOWN


def is_retryable(exception: Exception) -> bool:
    """Whether a failed request may succeed when sent again."""
    if isinstance(exception, CouchRequestError):
        if exception.status in RETRYABLE_CLIENT_STATUSES:
            return True
        return categorize_error(exception) == ErrorCategory.SERVER
    return categorize_error(exception) in (ErrorCategory.NETWORK, ErrorCategory.TIMEOUT, ErrorCategory.SERVER)
