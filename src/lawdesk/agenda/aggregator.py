# src/lawdesk/agenda/aggregator.py

"""
Unified agenda.

Appointments and open tasks are projected into UnifiedEvent values and
bucketed by local calendar day. Nothing is cached: every call reads the
current state of both collections.
"""

from __future__ import annotations

import calendar
import contextlib
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum

from ..core.clock import as_local, local_day
from ..records.appointment_book import AppointmentBook
from ..records.lifecycle import LifecycleStore
from ..records.models import (
    Appointment,
    AppointmentType,
    RecordKind,
    Task,
    TaskStatus,
    TaskType,
    Visibility,
)

logger = logging.getLogger(__name__)


class EventCategory(StrEnum):
    HEARING = "hearing"
    DEADLINE = "deadline"
    MEETING = "meeting"
    ORAL_ARGUMENT = "oral_argument"
    INTERNAL_DEADLINE = "internal_deadline"
    TASK = "task"
    NEUTRAL = "neutral"


_CATEGORY_BY_TYPE: dict[str, EventCategory] = {
    AppointmentType.HEARING.value: EventCategory.HEARING,
    TaskType.DEADLINE.value: EventCategory.DEADLINE,
    AppointmentType.MEETING.value: EventCategory.MEETING,
    AppointmentType.ORAL_ARGUMENT.value: EventCategory.ORAL_ARGUMENT,
    AppointmentType.INTERNAL_DEADLINE.value: EventCategory.INTERNAL_DEADLINE,
    TaskType.TASK.value: EventCategory.TASK,
}

EVENT_COLORS: dict[EventCategory, str] = {
    EventCategory.HEARING: "red",
    EventCategory.DEADLINE: "yellow",
    EventCategory.MEETING: "blue",
    EventCategory.ORAL_ARGUMENT: "purple",
    EventCategory.INTERNAL_DEADLINE: "orange",
    EventCategory.TASK: "teal",
    EventCategory.NEUTRAL: "slate",
}

HIGH_SALIENCE = frozenset({EventCategory.HEARING, EventCategory.DEADLINE})


def classify_event(event_type: str | None) -> EventCategory:
    """Display category of an event type; unknown values are neutral."""
    return _CATEGORY_BY_TYPE.get(str(event_type or ""), EventCategory.NEUTRAL)


def is_high_salience(category: EventCategory) -> bool:
    return category in HIGH_SALIENCE


@dataclass(frozen=True, slots=True)
class EventOrigin:
    """Weak reference to the record an event was projected from."""

    kind: RecordKind
    id: str


@dataclass(frozen=True, slots=True)
class UnifiedEvent:
    id: str
    title: str
    date: datetime
    type: str
    origin: EventOrigin

    @property
    def category(self) -> EventCategory:
        return classify_event(self.type)

    @property
    def day(self) -> date:
        return local_day(self.date)


EventIndex = dict[date, list[UnifiedEvent]]


def event_from_appointment(app: Appointment) -> UnifiedEvent:
    return UnifiedEvent(
        id=app.id,
        title=app.title,
        date=app.date,
        type=str(app.appointment_type),
        origin=EventOrigin(RecordKind.APPOINTMENT, app.id),
    )


def event_from_task(task: Task) -> UnifiedEvent:
    return UnifiedEvent(
        id=task.id,
        title=task.title,
        date=task.due_date,
        type=str(task.type),
        origin=EventOrigin(RecordKind.TASK, task.id),
    )


def is_calendar_eligible(task: Task) -> bool:
    """Only active, not completed tasks show up on the agenda."""
    return task.visibility is Visibility.ACTIVE and task.status != TaskStatus.DONE


def bucket_events(events: list[UnifiedEvent]) -> EventIndex:
    """
    Group events by local calendar day.

    Days come out in ascending order; within a day events are ordered by full
    timestamp, and equal timestamps keep their input order.
    """
    ordered = sorted(events, key=lambda e: as_local(e.date))
    out: EventIndex = {}
    for ev in ordered:
        out.setdefault(local_day(ev.date), []).append(ev)
    return out


def is_overdue(task: Task, now: datetime) -> bool:
    """Due day strictly before today (time of day ignored) and not done."""
    if task.status == TaskStatus.DONE:
        return False
    return local_day(task.due_date) < local_day(now)


class TaskAccent(StrEnum):
    OVERDUE = "overdue"
    DEADLINE = "deadline"
    TASK = "task"


def task_accent(task: Task, now: datetime) -> TaskAccent:
    """Accent of a task in list views: overdue wins over the task type."""
    if is_overdue(task, now):
        return TaskAccent.OVERDUE
    if task.type == TaskType.DEADLINE:
        return TaskAccent.DEADLINE
    return TaskAccent.TASK


def month_days(year: int, month: int) -> list[date | None]:
    """
    Days of a month for a Sunday-first week grid.

    Leading None entries pad the first week up to the month's first weekday.
    """
    first_weekday, n_days = calendar.monthrange(year, month)
    # calendar.monthrange counts Monday as 0; the grid starts on Sunday.
    lead = (first_weekday + 1) % 7
    days: list[date | None] = [None] * lead
    days.extend(date(year, month, d) for d in range(1, n_days + 1))
    return days


@dataclass(frozen=True, slots=True)
class MonthView:
    year: int
    month: int
    days: list[date | None]
    events: EventIndex

    def events_on(self, day: date) -> list[UnifiedEvent]:
        return list(self.events.get(day, []))


class EventAggregator:
    """
    Read-only view merging appointments and eligible tasks.

    Both collections are read under their locks at the same time, so a
    concurrent mutation can never make an event vanish or appear twice within
    one aggregation pass.
    """

    def __init__(self, appointments: AppointmentBook, tasks: LifecycleStore[Task]) -> None:
        self._appointments = appointments
        self._tasks = tasks

    def events(self) -> list[UnifiedEvent]:
        with contextlib.ExitStack() as stack:
            # Fixed acquisition order: appointments, then tasks.
            stack.enter_context(self._appointments.locked())
            stack.enter_context(self._tasks.locked())
            out = [event_from_appointment(a) for a in self._appointments.all()]
            out.extend(event_from_task(t) for t in self._tasks.snapshot() if is_calendar_eligible(t))
        logger.debug("Aggregated %d events", len(out))
        return out

    def by_day(self) -> EventIndex:
        return bucket_events(self.events())

    def day(self, day: date) -> list[UnifiedEvent]:
        return self.by_day().get(day, [])

    def month(self, year: int, month: int) -> MonthView:
        index = self.by_day()
        in_month = {d: evs for d, evs in index.items() if d.year == year and d.month == month}
        return MonthView(year=year, month=month, days=month_days(year, month), events=in_month)
