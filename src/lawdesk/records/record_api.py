# src/lawdesk/records/record_api.py

"""
Cross-record helpers used by list/detail surfaces.

References between records (task -> case, case -> client, appointment -> case)
are weak: plain ids that may point at a permanently deleted record. Every
lookup here treats a miss as "no linked record", never as an error.
"""

from __future__ import annotations

from ..core.clock import as_local
from .appointment_book import AppointmentBook
from .lifecycle import LifecycleStore
from .models import Appointment, Case, Client, Task, TaskStatus, Visibility


def case_for_task(cases: LifecycleStore[Case], task: Task) -> Case | None:
    if not task.case_id:
        return None
    return cases.find(task.case_id)


def client_for_case(clients: LifecycleStore[Client], case: Case) -> Client | None:
    if not case.client_id:
        return None
    return clients.find(case.client_id)


def tasks_for_case(tasks: LifecycleStore[Task], case_id: str) -> list[Task]:
    return [t for t in tasks.snapshot() if t.case_id == case_id]


def appointments_for_case(book: AppointmentBook, case_id: str) -> list[Appointment]:
    return [a for a in book.all() if a.case_id == case_id]


def list_tasks(
    tasks: LifecycleStore[Task],
    visibility: Visibility = Visibility.ACTIVE,
    status: TaskStatus | None = None,
) -> list[Task]:
    """
    Tasks of one visibility state, earliest due date first.

    The status filter only narrows the active view; archived and trashed
    views always list everything they hold.
    """
    items = sorted(tasks.list_by_visibility(visibility), key=lambda t: as_local(t.due_date))
    if status is None or visibility is not Visibility.ACTIVE:
        return items
    return [t for t in items if t.status == status]
