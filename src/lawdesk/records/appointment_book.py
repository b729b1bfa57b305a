# src/lawdesk/records/appointment_book.py

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import replace
from typing import Any

from ..core.errors import NotFound
from ..core.ports import RecordRepo
from .models import Appointment, RecordKind

logger = logging.getLogger(__name__)


class AppointmentBook:
    """
    Plain CRUD collection of appointments.

    Appointments have no trash/archive state: remove() deletes immediately.
    """

    kind = RecordKind.APPOINTMENT.value

    def __init__(self, *, repo: RecordRepo | None = None, appointments: Iterable[Appointment] = ()) -> None:
        self._repo = repo
        self._items: dict[str, Appointment] = {a.id: a for a in appointments}
        self._lock = threading.RLock()

    @classmethod
    def from_repo(cls, repo: RecordRepo) -> AppointmentBook:
        book = cls(repo=repo, appointments=repo.load_records(cls.kind))
        logger.info("AppointmentBook ready total=%s", len(book))
        return book

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _save(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if self._repo is not None:
                self._repo.save_record(self.kind, appointment)
            self._items[appointment.id] = appointment
        return appointment

    def add(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id in self._items:
                raise ValueError(f"duplicate appointment id {appointment.id}")
            self._save(appointment)
        logger.info("Added appointment %s (%s)", appointment.id, appointment.appointment_type.value)
        return appointment

    def find(self, appointment_id: str) -> Appointment | None:
        with self._lock:
            return self._items.get(appointment_id)

    def get(self, appointment_id: str) -> Appointment:
        appointment = self.find(appointment_id)
        if appointment is None:
            raise NotFound(self.kind, appointment_id)
        return appointment

    def edit(self, appointment_id: str, **fields: Any) -> Appointment:
        if "id" in fields:
            raise ValueError("cannot edit appointment id")
        with self._lock:
            return self._save(replace(self.get(appointment_id), **fields))

    def remove(self, appointment_id: str) -> None:
        with self._lock:
            if appointment_id not in self._items:
                raise NotFound(self.kind, appointment_id)
            if self._repo is not None:
                self._repo.delete_record(self.kind, appointment_id)
            del self._items[appointment_id]
        logger.info("Removed appointment %s", appointment_id)

    def all(self) -> list[Appointment]:
        with self._lock:
            return list(self._items.values())
