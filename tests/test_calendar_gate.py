# tests/test_calendar_gate.py

from __future__ import annotations

import asyncio
import random

import pytest

from lawdesk.agenda.calendar_gate import SettingsGate, SimulatedCalendarConnector, connect_calendar
from lawdesk.records.models import CalendarSettings

from .fakes import FakeCalendarConnector, InMemoryRecordRepo


def test_gate_starts_disconnected_and_toggles() -> None:
    gate = SettingsGate()
    assert not gate.is_connected

    gate.connect()
    gate.connect()
    assert gate.is_connected

    gate.disconnect()
    assert not gate.is_connected
    assert gate.settings == CalendarSettings(google_calendar_connected=False)


def test_expose_never_runs_producer_while_disconnected() -> None:
    gate = SettingsGate()
    calls: list[int] = []

    def produce() -> list[str]:
        calls.append(1)
        return ["event"]

    assert gate.expose(produce) is None
    assert calls == []

    gate.connect()
    assert gate.expose(produce) == ["event"]
    assert calls == [1]


def test_gate_persists_settings() -> None:
    repo = InMemoryRecordRepo()
    gate = SettingsGate.from_repo(repo)
    gate.connect()

    assert repo.settings == CalendarSettings(google_calendar_connected=True)
    assert SettingsGate.from_repo(repo).is_connected


def test_gate_keeps_state_when_persisting_fails() -> None:
    repo = InMemoryRecordRepo()
    gate = SettingsGate.from_repo(repo)
    repo.fail_saves = True

    with pytest.raises(OSError):
        gate.connect()
    assert not gate.is_connected


@pytest.mark.asyncio
async def test_connect_success_opens_gate() -> None:
    gate = SettingsGate()
    connector = FakeCalendarConnector(result=True)

    assert await connect_calendar(gate, connector) is True
    assert gate.is_connected
    assert connector.calls == 1


@pytest.mark.asyncio
async def test_connect_failure_leaves_gate_disconnected() -> None:
    gate = SettingsGate(CalendarSettings(google_calendar_connected=True))

    assert await connect_calendar(gate, FakeCalendarConnector(result=False)) is False
    assert not gate.is_connected


@pytest.mark.asyncio
async def test_connector_exception_counts_as_failure() -> None:
    gate = SettingsGate()

    ok = await connect_calendar(gate, FakeCalendarConnector(error=RuntimeError("oauth popup closed")))

    assert ok is False
    assert not gate.is_connected


@pytest.mark.asyncio
async def test_cancelled_connect_leaves_gate_untouched() -> None:
    gate = SettingsGate(CalendarSettings(google_calendar_connected=True))
    connector = FakeCalendarConnector(hang=True)

    task = asyncio.create_task(connect_calendar(gate, connector))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert gate.is_connected


@pytest.mark.asyncio
async def test_simulated_connector_follows_success_rate() -> None:
    always = SimulatedCalendarConnector(success_rate=1.0, delay_seconds=0.0)
    never = SimulatedCalendarConnector(success_rate=0.0, delay_seconds=0.0, rng=random.Random(1))

    assert await always.connect() is True
    assert await never.connect() is False
