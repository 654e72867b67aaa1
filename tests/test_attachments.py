"""
Unit tests for AttachmentStage.

Tests cover:
- Staging local files (validation, naming, overwrite in place)
- Deletion flags and physical removal
- Pending additions / deletions diff
- Conflict between pending content and deletion
- Hydration from server metadata
"""

from pathlib import Path

import pytest

from couchkit.core.exceptions import InvalidArgumentError, NotFoundError
from couchkit.types.attachments import AttachmentRecord, AttachmentStage


class TestAddOrUpdate:
    """Test staging local content."""

    def test_add_creates_single_pending_record(self, photo_file):
        """A staged file shows up once with its content type and content."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")

        records = list(stage.enumerate())
        assert len(records) == 1
        assert records[0].name == "photo.jpg"
        assert records[0].content_type == "image/jpeg"
        assert records[0].pending_content == Path(photo_file)
        assert records[0].length == photo_file.stat().st_size

    def test_accepts_string_path(self, photo_file):
        stage = AttachmentStage()
        record = stage.add_or_update(str(photo_file), "image/jpeg")
        assert record.pending_content == Path(photo_file)

    def test_explicit_name_overrides_file_name(self, photo_file):
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg", attachment_name="cover")

        assert "cover" in stage
        assert "photo.jpg" not in stage

    def test_update_in_place_without_duplicate(self, photo_file):
        """Re-staging the same name replaces the content type instead of adding a key."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")
        stage.add_or_update(photo_file, "application/octet-stream")

        records = list(stage.enumerate())
        assert len(records) == 1
        assert records[0].content_type == "application/octet-stream"

    def test_update_replaces_server_metadata(self, photo_file, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        stage.add_or_update(photo_file, "image/jpeg", attachment_name="avatar.png")

        record = stage.get("avatar.png")
        assert record.is_pending_upload
        assert record.digest is None
        assert record.stub is False

    @pytest.mark.parametrize("path", [None, ""])
    def test_empty_path_rejected(self, path):
        stage = AttachmentStage()
        with pytest.raises(InvalidArgumentError) as exc_info:
            stage.add_or_update(path, "image/jpeg")
        assert exc_info.value.argument == "path"

    @pytest.mark.parametrize("content_type", [None, ""])
    def test_empty_content_type_rejected(self, photo_file, content_type):
        stage = AttachmentStage()
        with pytest.raises(InvalidArgumentError) as exc_info:
            stage.add_or_update(photo_file, content_type)
        assert exc_info.value.argument == "content_type"

    def test_empty_attachment_name_rejected(self, photo_file):
        stage = AttachmentStage()
        with pytest.raises(InvalidArgumentError):
            stage.add_or_update(photo_file, "image/jpeg", attachment_name="")

    def test_missing_file_raises_not_found(self, tmp_path):
        stage = AttachmentStage()
        with pytest.raises(NotFoundError, match="File does not exist"):
            stage.add_or_update(tmp_path / "missing.bin", "application/octet-stream")

    def test_directory_is_not_a_file(self, tmp_path):
        stage = AttachmentStage()
        with pytest.raises(NotFoundError):
            stage.add_or_update(tmp_path, "application/octet-stream")

    def test_rejected_call_leaves_stage_unchanged(self, photo_file, tmp_path):
        """Validation happens before any mutation."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")

        with pytest.raises(NotFoundError):
            stage.add_or_update(tmp_path / "missing.jpg", "image/png", attachment_name="photo.jpg")

        assert stage.get("photo.jpg").content_type == "image/jpeg"
        assert len(stage) == 1

    def test_uses_injected_file_system(self, fake_file_system):
        stage = AttachmentStage(file_system=fake_file_system)
        record = stage.add_or_update("/data/report.pdf", "application/pdf")

        assert record.name == "report.pdf"
        assert record.length == len(b"%PDF-1.7 report")
        assert fake_file_system.exists_calls == ["/data/report.pdf"]

    def test_unreadable_file_rejected(self, fake_file_system):
        fake_file_system.unreadable.add("/data/report.pdf")
        stage = AttachmentStage(file_system=fake_file_system)

        with pytest.raises(InvalidArgumentError, match="not readable") as exc_info:
            stage.add_or_update("/data/report.pdf", "application/pdf")

        assert exc_info.value.argument == "path"
        assert stage.all_records() == []


class TestDeletion:
    """Test mark_deleted and remove."""

    def test_mark_deleted_hides_from_enumeration(self, photo_file, notes_file):
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")
        stage.add_or_update(notes_file, "text/plain")

        stage.mark_deleted("photo.jpg")

        assert [r.name for r in stage.enumerate()] == ["notes.txt"]
        assert [r.name for r in stage.pending_deletions()] == ["photo.jpg"]
        assert "photo.jpg" not in stage
        assert len(stage) == 1

    def test_mark_deleted_unknown_raises_not_found(self):
        stage = AttachmentStage()
        with pytest.raises(NotFoundError):
            stage.mark_deleted("ghost.txt")

    def test_deleted_record_still_retrievable_until_removed(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        stage.mark_deleted("cv.pdf")

        assert stage.get("cv.pdf").marked_deleted is True

        stage.remove("cv.pdf")

        assert stage.pending_deletions() == []
        with pytest.raises(NotFoundError):
            stage.get("cv.pdf")

    def test_remove_is_idempotent(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        stage.remove("cv.pdf")
        stage.remove("cv.pdf")
        stage.remove("never-existed")

        assert [r.name for r in stage] == ["avatar.png"]

    def test_add_revives_deleted_record(self, photo_file):
        """The newest intent wins: staging content again clears the deletion flag."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")
        stage.mark_deleted("photo.jpg")

        stage.add_or_update(photo_file, "image/jpeg")

        assert [r.name for r in stage.enumerate()] == ["photo.jpg"]
        assert stage.pending_deletions() == []

    def test_delete_keeps_pending_content(self, photo_file):
        """Both flags stay set so the conflict remains observable."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")
        assert [r.name for r in stage.pending_additions()] == ["photo.jpg"]

        stage.mark_deleted("photo.jpg")

        assert [r.name for r in stage.pending_additions()] == ["photo.jpg"]
        assert [r.name for r in stage.pending_deletions()] == ["photo.jpg"]
        assert stage.get("photo.jpg").pending_content == Path(photo_file)


class TestLookupAndEnumeration:
    """Test get, indexing and iteration."""

    def test_get_unknown_raises_not_found(self):
        stage = AttachmentStage()
        with pytest.raises(NotFoundError) as exc_info:
            stage.get("nope")
        assert "nope" in str(exc_info.value)
        assert isinstance(exc_info.value, LookupError)

    def test_getitem_matches_get(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        assert stage["cv.pdf"] is stage.get("cv.pdf")

    def test_enumerate_reflects_current_state(self, photo_file, notes_file):
        """Each call yields a fresh sequence, not a snapshot."""
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")
        first = [r.name for r in stage.enumerate()]

        stage.add_or_update(notes_file, "text/plain")
        second = [r.name for r in stage.enumerate()]

        assert first == ["photo.jpg"]
        assert second == ["photo.jpg", "notes.txt"]

    def test_enumerate_is_lazy(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        iterator = stage.enumerate()
        assert next(iterator).name == "avatar.png"

    def test_empty_stage(self):
        stage = AttachmentStage()
        assert list(stage) == []
        assert stage.pending_additions() == []
        assert stage.pending_deletions() == []
        assert stage.has_changes() is False


class TestHydration:
    """Test building a stage from server metadata."""

    def test_from_server_backfills_names(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)

        avatar = stage.get("avatar.png")
        assert avatar.name == "avatar.png"
        assert avatar.content_type == "image/png"
        assert avatar.digest == "md5-abc=="
        assert avatar.revpos == 2
        assert avatar.stub is True

    def test_hydrated_records_are_unchanged(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        assert stage.pending_additions() == []
        assert stage.pending_deletions() == []
        assert stage.has_changes() is False

    def test_from_server_accepts_records(self):
        stage = AttachmentStage.from_server({"a.txt": AttachmentRecord(content_type="text/plain")})
        assert stage.get("a.txt").name == "a.txt"

    def test_from_server_none(self):
        assert len(AttachmentStage.from_server(None)) == 0

    def test_constructor_backfills_names(self):
        stage = AttachmentStage({"b.txt": AttachmentRecord(name="stale")})
        assert stage.get("b.txt").name == "b.txt"


class TestAcknowledgement:
    """Test state transitions applied after a successful write."""

    def test_mark_uploaded_clears_pending_content(self, photo_file):
        stage = AttachmentStage()
        stage.add_or_update(photo_file, "image/jpeg")

        stage.mark_uploaded("photo.jpg")

        assert stage.pending_additions() == []
        assert stage.get("photo.jpg").stub is True
        assert stage.has_changes() is False
        assert [r.name for r in stage] == ["photo.jpg"]

    def test_mark_uploaded_unknown_raises(self):
        with pytest.raises(NotFoundError):
            AttachmentStage().mark_uploaded("ghost")

    def test_has_changes_after_deletion(self, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        stage.mark_deleted("avatar.png")
        assert stage.has_changes() is True

    def test_holds_tracks_restaging(self, photo_file, notes_file, server_attachments):
        stage = AttachmentStage.from_server(server_attachments)
        stage.add_or_update(photo_file, "image/jpeg")
        photo = stage.get("photo.jpg")
        cv = stage.get("cv.pdf")
        photo_version, cv_version = photo.version, cv.version

        assert stage.holds(photo, photo_version) is True
        stage.add_or_update(notes_file, "text/plain", attachment_name="photo.jpg")
        assert stage.holds(photo, photo_version) is False

        stage.mark_deleted("cv.pdf")
        assert stage.holds(cv, cv_version) is False

        stage.remove("avatar.png")
        avatar = AttachmentRecord(name="avatar.png")
        assert stage.holds(avatar, avatar.version) is False
