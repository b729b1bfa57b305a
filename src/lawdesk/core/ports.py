# src/lawdesk/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps persistence, the clock and the calendar integration swappable
and makes testing easier.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol


class Clock(Protocol):
    """Injectable "current time" source."""

    def now(self) -> datetime: ...


class CalendarConnector(Protocol):
    """
    External calendar integration.

    Returns True when the account was connected. The gate only cares about
    the resulting boolean, never about the mechanism.
    """

    async def connect(self) -> bool: ...


class RecordRepo(Protocol):
    """
    Durable storage keyed by (kind, id) with load-all / save-one semantics.

    Records are the dataclasses from records/models.py; the repo must
    round-trip every field, including whether optional fields are set.
    """

    def load_records(self, kind: str) -> list[Any]: ...
    def save_record(self, kind: str, record: Any) -> None: ...
    def delete_record(self, kind: str, record_id: str) -> None: ...

    def load_settings(self) -> Any | None: ...
    def save_settings(self, settings: Any) -> None: ...
