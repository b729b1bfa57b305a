# src/lawdesk/records/models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum
from typing import Self


def new_id() -> str:
    return uuid.uuid4().hex


class _DbEnum(StrEnum):
    @classmethod
    def from_db(cls, raw: str | None, default: Self | None = None) -> Self:
        """Parse a stored value; unknown or empty values map to `default` (or the first member)."""
        fallback = default if default is not None else next(iter(cls))
        if not raw:
            return fallback
        try:
            return cls(raw)
        except ValueError:
            return fallback


class RecordKind(_DbEnum):
    CLIENT = "client"
    CASE = "case"
    TASK = "task"
    APPOINTMENT = "appointment"


class Visibility(_DbEnum):
    """
    Three-way partition of every lifecycle entity.

    - active:   not deleted, not archived
    - archived: not deleted, archived
    - trashed:  deleted (archive flag is kept but ignored)
    """

    ACTIVE = "active"
    ARCHIVED = "archived"
    TRASHED = "trashed"


class TaskStatus(_DbEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskType(_DbEnum):
    TASK = "task"
    DEADLINE = "deadline"


class AppointmentType(_DbEnum):
    HEARING = "hearing"
    MEETING = "meeting"
    ORAL_ARGUMENT = "oral_argument"
    INTERNAL_DEADLINE = "internal_deadline"
    OTHER = "other"


class CaseStatus(_DbEnum):
    OPEN = "open"
    SUSPENDED = "suspended"
    CLOSED = "closed"


# Fields only the lifecycle store may change.
LIFECYCLE_FIELDS = frozenset({"id", "is_deleted", "is_archived", "deleted_at", "archived_at"})

# Fields edit() refuses: lifecycle state, the creation stamp and the
# append-only update thread of a task.
PROTECTED_FIELDS = LIFECYCLE_FIELDS | {"created_at", "updates"}


@dataclass(frozen=True, slots=True, kw_only=True)
class Entity:
    id: str
    is_deleted: bool = False
    is_archived: bool = False
    deleted_at: datetime | None = None
    archived_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def visibility(self) -> Visibility:
        if self.is_deleted:
            return Visibility.TRASHED
        if self.is_archived:
            return Visibility.ARCHIVED
        return Visibility.ACTIVE


@dataclass(frozen=True, slots=True, kw_only=True)
class Client(Entity):
    name: str
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Case(Entity):
    name: str
    client_id: str | None = None
    case_number: str | None = None
    court: str | None = None
    case_type: str = ""
    status: CaseStatus = CaseStatus.OPEN
    responsible_lawyers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str
    mime_type: str
    data: str  # data:<mime>;base64,<payload>


@dataclass(frozen=True, slots=True)
class Update:
    id: str
    timestamp: datetime
    text: str
    attachment: Attachment | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Task(Entity):
    title: str
    due_date: datetime
    assigned_to: str = ""
    type: TaskType = TaskType.TASK
    status: TaskStatus = TaskStatus.PENDING
    case_id: str | None = None
    updates: tuple[Update, ...] = ()

    def with_update(self, update: Update) -> Task:
        return replace(self, updates=self.updates + (update,))


@dataclass(frozen=True, slots=True, kw_only=True)
class Appointment:
    id: str
    title: str
    date: datetime
    appointment_type: AppointmentType = AppointmentType.OTHER
    case_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class CalendarSettings:
    """Process-wide settings record; replaced whole on every change."""

    google_calendar_connected: bool = False

    def merged(self, **changes: object) -> CalendarSettings:
        return replace(self, **changes)
