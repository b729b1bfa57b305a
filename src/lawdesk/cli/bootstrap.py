# src/lawdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (clock/records/agenda/calendar).
"""

from __future__ import annotations

import logging

from ..agenda.aggregator import EventAggregator
from ..agenda.calendar_gate import SettingsGate, SimulatedCalendarConnector
from ..config import get_settings
from ..core.clock import SystemClock
from ..core.ports import CalendarConnector, Clock
from ..core.state import AppState
from ..records.appointment_book import AppointmentBook
from ..records.lifecycle import LifecycleStore
from ..records.models import RecordKind
from ..records.record_store import RecordStore
from ..records.update_log import UpdateLog

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.records_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    clock: Clock | None = None,
    connector: CalendarConnector | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings, clock and connector injectable makes the app easier to
    test and avoids hidden global config reads. If settings is None, falls
    back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    repo = RecordStore(settings.records_db_path)

    clients = LifecycleStore.from_repo(RecordKind.CLIENT.value, clock=clock, repo=repo)
    cases = LifecycleStore.from_repo(RecordKind.CASE.value, clock=clock, repo=repo)
    tasks = LifecycleStore.from_repo(RecordKind.TASK.value, clock=clock, repo=repo)
    appointments = AppointmentBook.from_repo(repo)

    if connector is None:
        connector = SimulatedCalendarConnector(
            success_rate=settings.calendar_connect_success_rate,
            delay_seconds=settings.calendar_connect_delay_seconds,
        )

    state = AppState(
        settings=settings,
        clock=clock,
        repo=repo,
        clients=clients,
        cases=cases,
        tasks=tasks,
        appointments=appointments,
        updates=UpdateLog(tasks, clock=clock, max_attachment_bytes=settings.attachment_max_bytes),
        gate=SettingsGate.from_repo(repo, default_connected=settings.calendar_connected_default),
        agenda=EventAggregator(appointments, tasks),
        connector=connector,
    )
    logger.info(
        "State ready clients=%d cases=%d tasks=%d appointments=%d calendar=%s",
        len(clients),
        len(cases),
        len(tasks),
        len(appointments),
        "connected" if state.gate.is_connected else "disconnected",
    )
    return state
