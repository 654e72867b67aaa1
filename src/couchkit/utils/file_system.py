"""File-system access used to validate and read attachment sources."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

PathLike = Union[str, Path]


@dataclass(frozen=True)
class FileMetadata:
    """Name and size of a local file."""

    name: str
    size: int
    path: Path


class FileSystem(Protocol):
    def exists(self, path: PathLike) -> bool: ...

    def is_readable(self, path: PathLike) -> bool: ...

    def read_metadata(self, path: PathLike) -> FileMetadata: ...

    def read_bytes(self, path: PathLike) -> bytes: ...


class LocalFileSystem:
    def exists(self, path: PathLike) -> bool:
        return Path(path).is_file()

    def is_readable(self, path: PathLike) -> bool:
        return os.access(path, os.R_OK)

    def read_metadata(self, path: PathLike) -> FileMetadata:
        resolved = Path(path)
        return FileMetadata(name=resolved.name, size=resolved.stat().st_size, path=resolved)

    def read_bytes(self, path: PathLike) -> bytes:
        return Path(path).read_bytes()
