"""Local document-side types."""

from .attachments import AttachmentRecord, AttachmentStage

__all__ = ["AttachmentRecord", "AttachmentStage"]
