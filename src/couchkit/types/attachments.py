"""
Attachment staging for CouchDB documents.

An ``AttachmentStage`` tracks what a document's attachments should look like
after the next write: records that are unchanged on the server, records with
local file content waiting to be uploaded, and records marked for deletion.
Nothing here touches the network; the HTTP client reads
``pending_additions()`` and ``pending_deletions()`` when it writes the
document and acknowledges the stage afterwards.

When a record is both marked deleted and still carries pending content, both
flags are kept. The write omits the attachment (delete wins on the wire) while
``pending_additions()`` keeps reporting it so the conflict stays visible.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from couchkit.core.exceptions import InvalidArgumentError, NotFoundError
from couchkit.utils.file_system import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)


@dataclass
class AttachmentRecord:
    """A single attachment of a document, local or server-side."""

    name: Optional[str] = None
    content_type: Optional[str] = None
    pending_content: Optional[Path] = None
    marked_deleted: bool = False
    # Server metadata from the document's _attachments object
    digest: Optional[str] = None
    length: Optional[int] = None
    revpos: Optional[int] = None
    stub: bool = False
    encoding: Optional[str] = None
    encoded_length: Optional[int] = None
    # Bumped by add_or_update and mark_deleted
    version: int = field(default=0, compare=False, repr=False)

    @property
    def is_pending_upload(self) -> bool:
        return self.pending_content is not None

    @classmethod
    def from_json(cls, name: str, data: Mapping[str, Any]) -> "AttachmentRecord":
        """Build a record from one entry of a document's ``_attachments`` object."""
        return cls(
            name=name,
            content_type=data.get("content_type"),
            digest=data.get("digest"),
            length=data.get("length"),
            revpos=data.get("revpos"),
            stub=bool(data.get("stub", False)),
            encoding=data.get("encoding"),
            encoded_length=data.get("encoded_length"),
        )


class AttachmentStage:
    """Keyed collection of attachment records with pending-change tracking."""

    def __init__(
        self,
        attachments: Optional[Dict[str, AttachmentRecord]] = None,
        file_system: Optional[FileSystem] = None,
    ):
        self._attachments: Dict[str, AttachmentRecord] = {}
        self._file_system = file_system or LocalFileSystem()
        for name, record in (attachments or {}).items():
            record.name = name
            self._attachments[name] = record

    @property
    def file_system(self) -> FileSystem:
        return self._file_system

    @classmethod
    def from_server(
        cls,
        attachments: Optional[Mapping[str, Union[AttachmentRecord, Mapping[str, Any]]]],
        file_system: Optional[FileSystem] = None,
    ) -> "AttachmentStage":
        """
        Hydrate a stage from a server-provided ``_attachments`` mapping.

        Args:
            attachments: Mapping of attachment name to either an ``AttachmentRecord``
                or the raw JSON object CouchDB returns for it.
            file_system: Optional file-system adapter used by later ``add_or_update`` calls.

        Returns:
            A stage whose records are all unchanged, named after their keys.
        """
        records: Dict[str, AttachmentRecord] = {}
        for name, data in (attachments or {}).items():
            if isinstance(data, AttachmentRecord):
                records[name] = data
            else:
                records[name] = AttachmentRecord.from_json(name, data)
        return cls(records, file_system=file_system)

    def add_or_update(self, path: Union[str, Path], content_type: str, attachment_name: Optional[str] = None) -> AttachmentRecord:
        """
        Stage local file content as a new or replacement attachment.

        Args:
            path: Local file to upload on the next write.
            content_type: MIME type of the content.
            attachment_name: Attachment name, the file name of ``path`` when omitted.

        Returns:
            The staged record.

        Raises:
            InvalidArgumentError: ``path``, ``content_type`` or ``attachment_name`` is empty,
                or ``path`` cannot be read.
            NotFoundError: ``path`` does not refer to an existing file.
        """
        if path is None or str(path) == "":
            raise InvalidArgumentError("Attachment path cannot be empty.", argument="path")
        if not content_type:
            raise InvalidArgumentError("Attachment content type cannot be empty.", argument="content_type")
        if attachment_name is not None and attachment_name == "":
            raise InvalidArgumentError("Attachment name cannot be empty.", argument="attachment_name")
        if not self._file_system.exists(path):
            raise NotFoundError(f"File does not exist: {path}", argument="path")
        if not self._file_system.is_readable(path):
            raise InvalidArgumentError(f"File is not readable: {path}", argument="path")

        metadata = self._file_system.read_metadata(path)
        name = attachment_name or metadata.name

        record = self._attachments.get(name)
        if record is None:
            record = AttachmentRecord(name=name)
            self._attachments[name] = record
            logger.debug(f"Staged new attachment '{name}' from {path}")
        else:
            logger.debug(f"Updated staged attachment '{name}' from {path}")

        record.content_type = content_type
        record.pending_content = metadata.path
        record.length = metadata.size
        record.marked_deleted = False
        # Server digest no longer describes the staged content
        record.digest = None
        record.stub = False
        record.encoding = None
        record.encoded_length = None
        record.version += 1
        return record

    def mark_deleted(self, attachment_name: str) -> None:
        """Flag an attachment for deletion on the next write; pending content is kept."""
        record = self.get(attachment_name)
        record.marked_deleted = True
        record.version += 1
        if record.is_pending_upload:
            logger.warning(
                f"Attachment '{attachment_name}' marked deleted while local content is still pending"
            )
        else:
            logger.debug(f"Marked attachment '{attachment_name}' for deletion")

    def mark_uploaded(self, attachment_name: str) -> None:
        """Clear the pending content of an attachment after the server stored it."""
        record = self.get(attachment_name)
        record.pending_content = None
        record.stub = True

    def remove(self, attachment_name: str) -> None:
        """Drop a record from the stage. Unknown names are ignored."""
        if self._attachments.pop(attachment_name, None) is not None:
            logger.debug(f"Removed attachment '{attachment_name}' from stage")

    def get(self, attachment_name: str) -> AttachmentRecord:
        try:
            return self._attachments[attachment_name]
        except KeyError:
            raise NotFoundError(
                f"Attachment not found: {attachment_name}", argument="attachment_name"
            ) from None

    def enumerate(self) -> Iterator[AttachmentRecord]:
        """Yield the records that are not marked deleted, in insertion order."""
        for record in self._attachments.values():
            if not record.marked_deleted:
                yield record

    def pending_additions(self) -> List[AttachmentRecord]:
        """Records whose local content must be uploaded on the next write."""
        return [record for record in self._attachments.values() if record.is_pending_upload]

    def pending_deletions(self) -> List[AttachmentRecord]:
        """Records that must be dropped from the next document revision."""
        return [record for record in self._attachments.values() if record.marked_deleted]

    def has_changes(self) -> bool:
        return any(record.is_pending_upload or record.marked_deleted for record in self._attachments.values())

    def all_records(self) -> List[AttachmentRecord]:
        """Every record, deleted ones included, in insertion order."""
        return list(self._attachments.values())

    def holds(self, record: AttachmentRecord, version: int) -> bool:
        """True if ``record`` is still the staged object for its name and was not restaged since ``version``."""
        return self._attachments.get(record.name) is record and record.version == version

    def __getitem__(self, attachment_name: str) -> AttachmentRecord:
        return self.get(attachment_name)

    def __iter__(self) -> Iterator[AttachmentRecord]:
        return self.enumerate()

    def __len__(self) -> int:
        return sum(1 for _ in self.enumerate())

    def __contains__(self, attachment_name: object) -> bool:
        record = self._attachments.get(attachment_name)
        return record is not None and not record.marked_deleted

    def __repr__(self) -> str:
        return (
            f"AttachmentStage(records={len(self._attachments)}, "
            f"additions={len(self.pending_additions())}, deletions={len(self.pending_deletions())})"
        )
