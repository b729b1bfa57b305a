# src/lawdesk/core/errors.py

"""
Error taxonomy.

Every error here is a local, recoverable condition reported to the immediate
caller. The console surface turns them into messages; nothing is fatal.
"""

from __future__ import annotations


class LawdeskError(Exception):
    """Base class for all recoverable core errors."""


class PreconditionViolation(LawdeskError):
    """A lifecycle transition was requested from the wrong visibility state."""

    def __init__(self, kind: str, entity_id: str, operation: str, reason: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        self.operation = operation
        self.reason = reason
        super().__init__(f"Cannot {operation} {kind} {entity_id}: {reason}")


class NotFoundOrAlreadyInState(PreconditionViolation):
    """The entity is missing, or it already is in the state the transition targets."""


class NotFound(LawdeskError, LookupError):
    """An id did not resolve to a stored record."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class AttachmentError(LawdeskError, ValueError):
    pass


class AttachmentTooLarge(AttachmentError):
    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Attachment is too large ({size} bytes, max {limit} bytes)")


class MalformedAttachment(AttachmentError):
    """Attachment name, MIME type and data must be given together."""
