"""API configuration for CouchDB endpoints."""

from enum import Enum
from urllib.parse import quote


class ErrorCategory(Enum):
    """Categories for different types of API errors."""

    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"
    TIMEOUT = "timeout"
    DATA = "data"
    UNKNOWN = "unknown"


class APIConfig:
    """CouchDB API configuration and settings."""

    # Server endpoint
    BASE_URL = "http://localhost:5984"

    # Request settings
    REQUEST_TIMEOUT = 60
    MAX_RETRIES = 5
    FIND_PAGE_SIZE = 100

    # Retry settings
    RETRY_BASE_DELAY = 2
    RETRY_MAX_DELAY = 60

    @staticmethod
    def _segment(value: str) -> str:
        return quote(value, safe="")

    @classmethod
    def get_database_url(cls, database: str, base_url: str = None) -> str:
        """Get the full URL for a database."""
        return f"{(base_url or cls.BASE_URL).rstrip('/')}/{cls._segment(database)}"

    @classmethod
    def get_document_url(cls, database: str, doc_id: str, base_url: str = None) -> str:
        """Get the URL of a single document."""
        # Design documents keep their literal slash
        if doc_id.startswith("_design/"):
            encoded = "_design/" + cls._segment(doc_id[len("_design/"):])
        else:
            encoded = cls._segment(doc_id)
        return f"{cls.get_database_url(database, base_url)}/{encoded}"

    @classmethod
    def get_attachment_url(cls, database: str, doc_id: str, name: str, base_url: str = None) -> str:
        """Get the URL of a document attachment."""
        return f"{cls.get_document_url(database, doc_id, base_url)}/{cls._segment(name)}"

    @classmethod
    def get_find_url(cls, database: str, base_url: str = None) -> str:
        """Get the Mango query URL for a database."""
        return f"{cls.get_database_url(database, base_url)}/_find"
