# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from lawdesk.cli.bootstrap import create_initial_state
from lawdesk.core.state import AppState

from .fakes import FakeCalendarConnector, FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_initial_state().

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="lawdesk-test",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        records_db_path=tmp_path / "records.sqlite3",
        # Limits
        attachment_max_bytes=5 * 1024 * 1024,
        # Calendar
        calendar_connected_default=False,
        calendar_connect_delay_seconds=0.0,
        calendar_connect_success_rate=1.0,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def connector() -> FakeCalendarConnector:
    return FakeCalendarConnector(result=True)


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, connector: FakeCalendarConnector) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep the real SQLite RecordStore here because its correctness
    is part of what we want to test.
    """
    return create_initial_state(settings=settings, clock=clock, connector=connector)
