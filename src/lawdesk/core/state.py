# src/lawdesk/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..agenda.aggregator import EventAggregator
from ..agenda.calendar_gate import SettingsGate
from ..records.appointment_book import AppointmentBook
from ..records.lifecycle import LifecycleStore
from ..records.models import Case, Client, RecordKind, Task
from ..records.update_log import UpdateLog
from .ports import CalendarConnector, Clock, RecordRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    clock: Clock
    repo: RecordRepo | None
    clients: LifecycleStore[Client]
    cases: LifecycleStore[Case]
    tasks: LifecycleStore[Task]
    appointments: AppointmentBook
    updates: UpdateLog
    gate: SettingsGate
    agenda: EventAggregator
    connector: CalendarConnector

    lock: threading.RLock = field(default_factory=threading.RLock)

    def store_for(self, kind: str) -> LifecycleStore[Any]:
        """Lifecycle store of a kind name ("client", "case", "task")."""
        stores: dict[str, LifecycleStore[Any]] = {
            RecordKind.CLIENT.value: self.clients,
            RecordKind.CASE.value: self.cases,
            RecordKind.TASK.value: self.tasks,
        }
        try:
            return stores[str(kind).lower()]
        except KeyError:
            raise ValueError(f"unknown record kind: {kind}") from None
