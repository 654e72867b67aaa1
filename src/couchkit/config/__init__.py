"""Configuration management for couchkit."""

from .api import APIConfig, ErrorCategory
from .settings import Settings

__all__ = ["Settings", "APIConfig", "ErrorCategory"]
