# tests/conftest.py
import os
import sys
from pathlib import Path

import pytest

# Make sure `src/` is on the import path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
sys.path.insert(0, os.path.join(ROOT, "src"))

from couchkit.query.deferred import DeferredQuery
from couchkit.utils.file_system import FileMetadata


class FakeFileSystem:
    """In-memory file system keyed by path string."""

    def __init__(self, files=None, unreadable=()):
        self.files = dict(files or {})
        self.unreadable = set(unreadable)
        self.exists_calls = []

    def exists(self, path):
        self.exists_calls.append(str(path))
        return str(path) in self.files

    def is_readable(self, path):
        return str(path) not in self.unreadable

    def read_metadata(self, path):
        content = self.files[str(path)]
        return FileMetadata(name=Path(str(path)).name, size=len(content), path=Path(str(path)))

    def read_bytes(self, path):
        return self.files[str(path)]


@pytest.fixture
def photo_file(tmp_path):
    """Provide an existing JPEG-like file on disk."""
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path


@pytest.fixture
def notes_file(tmp_path):
    """Provide an existing text file on disk."""
    path = tmp_path / "notes.txt"
    path.write_text("first draft", encoding="utf-8")
    return path


@pytest.fixture
def fake_file_system():
    """Provide an in-memory file system with two files."""
    return FakeFileSystem({
        "/data/report.pdf": b"%PDF-1.7 report",
        "/data/logo.png": b"\x89PNG logo",
    })


@pytest.fixture
def base_query():
    """Provide a fresh document query on the 'rebels' database."""
    return DeferredQuery.find("rebels", selector={"age": {"$gt": 20}})


@pytest.fixture
def server_attachments():
    """Provide the _attachments object of a stored document."""
    return {
        "avatar.png": {
            "content_type": "image/png",
            "digest": "md5-abc==",
            "length": 120,
            "revpos": 2,
            "stub": True,
        },
        "cv.pdf": {
            "content_type": "application/pdf",
            "digest": "md5-def==",
            "length": 4096,
            "revpos": 3,
            "stub": True,
        },
    }
