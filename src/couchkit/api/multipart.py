"""
Document bodies for writing staged attachments.

CouchDB drops every attachment that is missing from the ``_attachments``
object of a new revision, so deletions are expressed by omission. Unchanged
attachments are sent as stubs and uploads as ``follows`` entries whose bytes
travel in the parts of a ``multipart/related`` request, in the same order.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

import aiohttp

from couchkit.types.attachments import AttachmentRecord, AttachmentStage
from couchkit.utils.file_system import FileSystem, LocalFileSystem


def uploads_to_send(stage: AttachmentStage) -> List[AttachmentRecord]:
    """Pending uploads that are not also marked deleted."""
    return [record for record in stage.pending_additions() if not record.marked_deleted]


def build_attachments_stub(stage: AttachmentStage, lengths: Optional[Mapping[str, int]] = None) -> Dict[str, Dict[str, Any]]:
    """
    Build the ``_attachments`` object of the next document revision.

    Args:
        stage: The staged attachments.
        lengths: Byte length per upload name, overriding the length recorded at staging time.

    Returns:
        Mapping of attachment name to stub, in stage order.
    """
    lengths = lengths or {}
    attachments: Dict[str, Dict[str, Any]] = {}
    for record in stage.all_records():
        if record.marked_deleted:
            continue
        if record.is_pending_upload:
            attachments[record.name] = {
                "follows": True,
                "content_type": record.content_type,
                "length": lengths.get(record.name, record.length),
            }
        else:
            attachments[record.name] = {"stub": True}
    return attachments


def build_document_body(document: Mapping[str, Any], stage: AttachmentStage, lengths: Optional[Mapping[str, int]] = None) -> Dict[str, Any]:
    """Copy ``document`` and replace its ``_attachments`` with the staged state."""
    body = copy.deepcopy(dict(document))
    attachments = build_attachments_stub(stage, lengths)
    if attachments:
        body["_attachments"] = attachments
    else:
        body.pop("_attachments", None)
    return body


def read_upload_contents(uploads: List[AttachmentRecord], file_system: Optional[FileSystem] = None) -> Dict[str, bytes]:
    """Read the pending content of each upload, keyed by attachment name."""
    file_system = file_system or LocalFileSystem()
    return {record.name: file_system.read_bytes(record.pending_content) for record in uploads}


def write_multipart(body: Mapping[str, Any], uploads: List[AttachmentRecord], contents: Mapping[str, bytes]) -> aiohttp.MultipartWriter:
    """Wrap an already built document body and upload contents in a ``multipart/related`` writer."""
    writer = aiohttp.MultipartWriter("related")
    writer.append_json(body)
    for record in uploads:
        writer.append(contents[record.name], {"Content-Type": record.content_type})
    return writer

