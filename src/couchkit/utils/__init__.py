"""Utility helpers: logging setup and the local file-system adapter."""

from .file_system import FileMetadata, FileSystem, LocalFileSystem
from .logger_setup import setup_logging

__all__ = ["FileMetadata", "FileSystem", "LocalFileSystem", "setup_logging"]
