# src/lawdesk/agenda/calendar_gate.py

"""
Calendar gate.

The agenda is only exposed while the calendar is connected. Connecting goes
through a CalendarConnector port; the only thing the rest of the core sees is
the resulting boolean.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
from collections.abc import Callable
from typing import TypeVar

from ..core.ports import CalendarConnector, RecordRepo
from ..records.models import CalendarSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SettingsGate:
    """
    Two-state gate: Disconnected (initial) <-> Connected.

    Both transitions always succeed, from either state. Each change replaces
    the whole settings record and persists it when a repo is configured.
    """

    def __init__(self, settings: CalendarSettings | None = None, *, repo: RecordRepo | None = None) -> None:
        self._settings = settings if settings is not None else CalendarSettings()
        self._repo = repo
        self._lock = threading.Lock()

    @classmethod
    def from_repo(cls, repo: RecordRepo, *, default_connected: bool = False) -> SettingsGate:
        stored = repo.load_settings()
        if stored is None:
            stored = CalendarSettings(google_calendar_connected=default_connected)
        return cls(stored, repo=repo)

    @property
    def settings(self) -> CalendarSettings:
        return self._settings

    @property
    def is_connected(self) -> bool:
        return self._settings.google_calendar_connected

    def _update(self, **changes: object) -> CalendarSettings:
        with self._lock:
            new = self._settings.merged(**changes)
            if self._repo is not None:
                self._repo.save_settings(new)
            self._settings = new
        return new

    def connect(self) -> None:
        self._update(google_calendar_connected=True)
        logger.info("Calendar connected.")

    def disconnect(self) -> None:
        self._update(google_calendar_connected=False)
        logger.info("Calendar disconnected.")

    def expose(self, produce: Callable[[], T]) -> T | None:
        """
        Run `produce` only while connected.

        Returns None when disconnected; `produce` is not called at all, so no
        event data is computed or exposed.
        """
        if not self.is_connected:
            return None
        return produce()


class SimulatedCalendarConnector:
    """
    Stand-in for a real calendar integration: waits, then succeeds at random.
    """

    def __init__(
        self,
        *,
        success_rate: float = 0.7,
        delay_seconds: float = 1.5,
        rng: random.Random | None = None,
    ) -> None:
        self.success_rate = max(0.0, min(1.0, float(success_rate)))
        self.delay_seconds = max(0.0, float(delay_seconds))
        self._rng = rng or random.Random()

    async def connect(self) -> bool:
        logger.debug("Simulating calendar connection (delay=%.2fs)", self.delay_seconds)
        await asyncio.sleep(self.delay_seconds)
        return self._rng.random() < self.success_rate


async def connect_calendar(gate: SettingsGate, connector: CalendarConnector) -> bool:
    """
    Try to connect and leave the gate in the matching state.

    Failure (False or an exception) leaves the gate disconnected. Cancellation
    propagates and leaves the gate as it was.
    """
    try:
        ok = await connector.connect()
    except Exception:
        logger.exception("Calendar connector failed")
        ok = False

    if ok:
        gate.connect()
    else:
        gate.disconnect()
        logger.warning("Calendar connection failed.")
    return ok
