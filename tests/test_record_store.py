# tests/test_record_store.py

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from lawdesk.records.models import (
    Appointment,
    AppointmentType,
    Attachment,
    CalendarSettings,
    Case,
    CaseStatus,
    Client,
    Task,
    TaskStatus,
    TaskType,
    Update,
)
from lawdesk.records.record_store import RecordStore


def test_records_round_trip_all_fields(tmp_path: Path) -> None:
    store = RecordStore(tmp_path / "records.sqlite3")
    ts = datetime(2024, 3, 10, 9, 30).astimezone()

    client = Client(id="c1", name="ACME", email=None, phone="+1 555 0100", created_at=ts)
    case = Case(
        id="k1",
        name="ACME v. Doe",
        client_id="c1",
        case_number="2024-CV-17",
        court="District Court",
        case_type="civil",
        status=CaseStatus.SUSPENDED,
        responsible_lawyers=("ana", "bo"),
        is_archived=True,
        archived_at=ts,
    )
    task = Task(
        id="t1",
        title="File brief",
        due_date=datetime(2024, 3, 12, 17, 0),
        assigned_to="ana",
        type=TaskType.DEADLINE,
        status=TaskStatus.IN_PROGRESS,
        case_id="k1",
        is_deleted=True,
        deleted_at=ts,
        updates=(
            Update(id="u1", timestamp=ts, text="Draft ready"),
            Update(
                id="u2",
                timestamp=ts,
                text="Attachment: brief.txt",
                attachment=Attachment(name="brief.txt", mime_type="text/plain", data="data:text/plain;base64,aGk="),
            ),
        ),
    )
    app = Appointment(
        id="a1",
        title="Hearing",
        date=datetime(2024, 3, 10, 9, 0),
        appointment_type=AppointmentType.ORAL_ARGUMENT,
        case_id="k1",
        notes=None,
    )

    for kind, record in (("client", client), ("case", case), ("task", task), ("appointment", app)):
        store.save_record(kind, record)

    reopened = RecordStore(tmp_path / "records.sqlite3")
    assert reopened.load_records("client") == [client]
    assert reopened.load_records("case") == [case]
    assert reopened.load_records("task") == [task]
    assert reopened.load_records("appointment") == [app]
    assert reopened.count_records() == 4
    assert reopened.count_records("task") == 1


def test_upsert_keeps_first_insert_order(tmp_path: Path) -> None:
    store = RecordStore(tmp_path / "records.sqlite3")
    store.save_record("client", Client(id="a", name="A"))
    store.save_record("client", Client(id="b", name="B"))
    store.save_record("client", Client(id="a", name="A2"))

    loaded = store.load_records("client")
    assert [(c.id, c.name) for c in loaded] == [("a", "A2"), ("b", "B")]


def test_delete_record(tmp_path: Path) -> None:
    store = RecordStore(tmp_path / "records.sqlite3")
    store.save_record("client", Client(id="a", name="A"))
    store.delete_record("client", "a")
    store.delete_record("client", "missing")

    assert store.load_records("client") == []


def test_settings_round_trip(tmp_path: Path) -> None:
    store = RecordStore(tmp_path / "records.sqlite3")
    assert store.load_settings() is None

    store.save_settings(CalendarSettings(google_calendar_connected=True))
    assert RecordStore(tmp_path / "records.sqlite3").load_settings() == CalendarSettings(True)


def test_unreadable_rows_are_skipped(tmp_path: Path) -> None:
    db = tmp_path / "records.sqlite3"
    store = RecordStore(db)
    store.save_record("task", Task(id="ok", title="ok", due_date=datetime(2024, 3, 10)))

    conn = sqlite3.connect(str(db))
    conn.execute(
        "INSERT INTO records(kind, id, payload, created_at) VALUES ('task', 'bad', '{\"id\": \"bad\"}', 0)"
    )
    conn.commit()
    conn.close()

    assert [t.id for t in store.load_records("task")] == ["ok"]


def test_unknown_appointment_type_loads_as_other(tmp_path: Path) -> None:
    db = tmp_path / "records.sqlite3"
    store = RecordStore(db)

    conn = sqlite3.connect(str(db))
    conn.execute(
        "INSERT INTO records(kind, id, payload, created_at) VALUES ('appointment', 'a1', ?, 0)",
        ('{"id": "a1", "title": "x", "date": "2024-03-10T09:00:00", "appointment_type": "mediation"}',),
    )
    conn.commit()
    conn.close()

    (app,) = store.load_records("appointment")
    assert app.appointment_type is AppointmentType.OTHER


def test_schema_holds_only_key_payload_and_insert_time(tmp_path: Path) -> None:
    db = tmp_path / "records.sqlite3"
    store = RecordStore(db)
    store.save_record("client", Client(id="a", name="A"))
    store.save_record("client", Client(id="a", name="A2"))

    conn = sqlite3.connect(str(db))
    cols = [row[1] for row in conn.execute("PRAGMA table_info(records)")]
    conn.close()

    assert cols == ["kind", "id", "payload", "created_at"]
    assert [c.name for c in store.load_records("client")] == ["A2"]
