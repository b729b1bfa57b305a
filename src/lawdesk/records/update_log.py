# src/lawdesk/records/update_log.py

from __future__ import annotations

import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass

from ..core.clock import as_local
from ..core.errors import AttachmentTooLarge, MalformedAttachment
from ..core.ports import Clock
from .lifecycle import LifecycleStore
from .models import Attachment, Task, Update, new_id

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class AttachmentUpload:
    """
    A file offered for attachment, not yet read.

    `size` is the declared byte size (e.g. from stat()); `read` is only called
    once the size check has passed.
    """

    name: str
    mime_type: str
    size: int
    read: Callable[[], bytes]


def encode_data_url(mime_type: str, payload: bytes) -> str:
    b64 = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{b64}"


def payload_size(data: str) -> int:
    """
    Byte size of an encoded attachment without decoding it.

    base64 data URLs count their decoded payload; anything else counts its
    UTF-8 length.
    """
    header, sep, body = data.partition(",")
    if sep and header.startswith("data:") and header.endswith(";base64"):
        body = body.strip()
        padding = len(body) - len(body.rstrip("="))
        return (len(body) * 3) // 4 - padding
    return len(data.encode("utf-8"))


class UpdateLog:
    """
    Append-only, timestamp-ordered update thread of each Task.

    Updates live inside the Task record (Task.updates), so they follow the
    task through trash/archive/restore and disappear with a permanent delete.
    Appends go through the task store's per-id lock.
    """

    def __init__(
        self,
        tasks: LifecycleStore[Task],
        *,
        clock: Clock,
        max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    ) -> None:
        self._tasks = tasks
        self._clock = clock
        self.max_attachment_bytes = int(max_attachment_bytes)

    def _check_size(self, size: int) -> None:
        if size > self.max_attachment_bytes:
            raise AttachmentTooLarge(size, self.max_attachment_bytes)

    def append(
        self,
        task_id: str,
        text: str,
        *,
        attachment_name: str | None = None,
        attachment_mime_type: str | None = None,
        attachment_data: str | None = None,
    ) -> Update:
        parts = (attachment_name, attachment_mime_type, attachment_data)
        present = [p is not None and p != "" for p in parts]
        attachment: Attachment | None = None

        if any(present) and not all(present):
            raise MalformedAttachment(
                "attachment name, MIME type and data must be given together"
            )
        if all(present):
            self._check_size(payload_size(str(attachment_data)))
            attachment = Attachment(
                name=str(attachment_name),
                mime_type=str(attachment_mime_type),
                data=str(attachment_data),
            )

        text = (text or "").strip()
        if not text and attachment is None:
            raise ValueError("text is required")

        update = Update(
            id=new_id(),
            timestamp=self._clock.now(),
            text=text,
            attachment=attachment,
        )
        self._tasks.replace_entity(task_id, lambda t: t.with_update(update))
        logger.debug(
            "Update appended task=%s update=%s attachment=%s",
            task_id,
            update.id,
            attachment.name if attachment else None,
        )
        return update

    def attach(self, task_id: str, upload: AttachmentUpload, text: str | None = None) -> Update:
        """
        Attach a file. Oversized files are rejected before anything is read.
        """
        self._check_size(int(upload.size))
        # Fail on a missing task before reading the file.
        self._tasks.get(task_id)

        payload = upload.read()
        self._check_size(len(payload))

        name = upload.name
        return self.append(
            task_id,
            text if text is not None else f"Attachment: {name}",
            attachment_name=name,
            attachment_mime_type=upload.mime_type or "application/octet-stream",
            attachment_data=encode_data_url(upload.mime_type, payload),
        )

    def ordered(self, task_id: str) -> list[Update]:
        """Updates ascending by timestamp; equal timestamps keep append order."""
        task = self._tasks.get(task_id)
        return sorted(task.updates, key=lambda u: as_local(u.timestamp))
