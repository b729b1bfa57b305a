# tests/test_commands.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from lawdesk.cli.commands import CommandRegistry, registry
from lawdesk.records.models import Appointment, AppointmentType, Case, Client, Task, Visibility

from .fakes import FakeCalendarConnector


def test_command_registry_routes_4_and_5_params(state) -> None:
    reg = CommandRegistry()
    called = {"h4": 0, "h5": 0}

    def h4(state, args, user_id, room_id):
        called["h4"] += 1
        return "h4"

    def h5(state, args, user_id, room_id, emit):
        called["h5"] += 1
        if emit is not None:
            emit("note")
        return "h5"

    reg.register("a", h4, "a")
    reg.register("b", h5, "b")

    assert reg.handle(state, "/a x", user_id="u", room_id="r") == "h4"
    assert reg.handle(state, "/b y", user_id="u", room_id="r", emit=lambda _: None) == "h5"
    assert called["h4"] == 1
    assert called["h5"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")


def test_help_lists_registered_commands(state) -> None:
    out = registry.handle(state, "/help") or ""
    for name in ("/list", "/trash", "/purge", "/agenda", "/connect"):
        assert name in out


def test_trash_and_purge_require_confirmation(state) -> None:
    state.tasks.add(Task(id="t1", title="File brief", due_date=datetime(2024, 3, 12, 17, 0)))

    out = registry.handle(state, "/trash task t1") or ""
    assert "confirm" in out
    assert state.tasks.visibility_of("t1") is Visibility.ACTIVE

    registry.handle(state, "/trash task t1 confirm")
    assert state.tasks.visibility_of("t1") is Visibility.TRASHED

    out = registry.handle(state, "/purge task t1") or ""
    assert "irreversible" in out
    assert "t1" in state.tasks

    registry.handle(state, "/purge task t1 confirm")
    assert "t1" not in state.tasks


def test_lifecycle_errors_become_messages(state) -> None:
    state.tasks.add(Task(id="t1", title="File brief", due_date=datetime(2024, 3, 12, 17, 0)))

    out = registry.handle(state, "/restore task t1") or ""
    assert "not in trash" in out

    out = registry.handle(state, "/purge task t1 confirm") or ""
    assert "only trashed items" in out

    out = registry.handle(state, "/archive widget t1") or ""
    assert "unknown record kind" in out


def test_list_tasks_by_view(state) -> None:
    state.tasks.add(Task(id="t1", title="Active one", due_date=datetime(2024, 3, 12, 17, 0)))
    state.tasks.add(Task(id="t2", title="Archived one", due_date=datetime(2024, 3, 13, 17, 0)))
    registry.handle(state, "/archive task t2")

    active = registry.handle(state, "/list task") or ""
    archived = registry.handle(state, "/list task archived") or ""

    assert "Active one" in active and "Archived one" not in active
    assert "Archived one" in archived and "Active one" not in archived
    assert "No task records" in (registry.handle(state, "/list task trash") or "")


def test_list_marks_overdue_tasks(state) -> None:
    state.tasks.add(Task(id="t1", title="Late filing", due_date=datetime(2024, 3, 1, 9, 0)))
    out = registry.handle(state, "/list task") or ""
    assert "(overdue)" in out


def test_note_and_updates(state) -> None:
    state.tasks.add(Task(id="t1", title="File brief", due_date=datetime(2024, 3, 12, 17, 0)))

    assert registry.handle(state, "/note t1 Called the clerk") == "Update added."
    out = registry.handle(state, "/updates t1") or ""
    assert "Called the clerk" in out


def test_attach_file(state, tmp_path: Path) -> None:
    state.tasks.add(Task(id="t1", title="File brief", due_date=datetime(2024, 3, 12, 17, 0)))
    doc = tmp_path / "brief.txt"
    doc.write_text("hello", encoding="utf-8")
    emitted: list[str] = []

    out = registry.handle(state, f"/attach t1 {doc}", emit=emitted.append) or ""

    assert "attached" in out
    assert emitted
    (update,) = state.tasks.get("t1").updates
    assert update.text == "Attachment: brief.txt"
    assert update.attachment is not None
    assert update.attachment.mime_type == "text/plain"


def test_attach_rejects_oversized_file(state, tmp_path: Path) -> None:
    state.tasks.add(Task(id="t1", title="File brief", due_date=datetime(2024, 3, 12, 17, 0)))
    state.updates.max_attachment_bytes = 4
    doc = tmp_path / "big.txt"
    doc.write_text("hello", encoding="utf-8")

    out = registry.handle(state, f"/attach t1 {doc}") or ""

    assert "too large" in out
    assert state.tasks.get("t1").updates == ()


def test_agenda_hidden_until_connected(state, connector: FakeCalendarConnector) -> None:
    state.appointments.add(
        Appointment(
            id="a1",
            title="Hearing on motion",
            date=datetime(2024, 3, 10, 9, 0),
            appointment_type=AppointmentType.HEARING,
        )
    )

    assert "not connected" in (registry.handle(state, "/agenda 2024-03-10") or "")

    assert registry.handle(state, "/connect") == "Calendar connected."
    assert connector.calls == 1

    day = registry.handle(state, "/agenda 2024-03-10") or ""
    month = registry.handle(state, "/agenda") or ""
    assert "Hearing on motion" in day and "[red]" in day
    assert "2024-03-10" in month

    assert registry.handle(state, "/disconnect") == "Calendar disconnected."
    assert "not connected" in (registry.handle(state, "/agenda") or "")


def test_failed_connect_reports_failure(state, connector: FakeCalendarConnector) -> None:
    connector.result = False
    assert registry.handle(state, "/connect") == "Failed to connect the calendar."
    assert not state.gate.is_connected


def test_add_creates_records(state) -> None:
    out = registry.handle(state, "/add client ACME Corp") or ""
    assert out.startswith("Client added")
    assert [c.name for c in state.clients.snapshot()] == ["ACME Corp"]

    out = registry.handle(state, "/add task 2024-03-15T10:00 deadline Reply to motion") or ""
    assert out.startswith("Task added")
    (task,) = state.tasks.snapshot()
    assert task.title == "Reply to motion"

    assert "Invalid date" in (registry.handle(state, "/add task tomorrow task x") or "")


def test_case_detail_shows_client_tasks_and_appointments(state) -> None:
    state.clients.add(Client(id="c1", name="ACME Corp"))
    state.cases.add(Case(id="k1", name="ACME v. Doe", client_id="c1", court="District Court"))
    registry.handle(state, "/add task 2024-03-15T10:00 deadline case=k1 Reply to motion")
    registry.handle(state, "/add appointment 2024-03-18T09:00 hearing case=k1 Motion hearing")
    registry.handle(state, "/add task 2024-03-16T10:00 task Unrelated chore")

    out = registry.handle(state, "/case k1") or ""

    assert "ACME v. Doe" in out
    assert "Client: ACME Corp" in out
    assert "Tasks (1):" in out and "Reply to motion" in out
    assert "Appointments (1):" in out and "Motion hearing" in out
    assert "Unrelated chore" not in out


def test_case_detail_after_client_purge(state) -> None:
    state.clients.add(Client(id="c1", name="ACME Corp"))
    state.cases.add(Case(id="k1", name="ACME v. Doe", client_id="c1"))
    registry.handle(state, "/trash client c1 confirm")
    registry.handle(state, "/purge client c1 confirm")

    out = registry.handle(state, "/case k1") or ""
    assert "Client: not found" in out
    assert "not found" in (registry.handle(state, "/case nope") or "")


def test_reschedule_and_remove_appointment(state) -> None:
    state.appointments.add(Appointment(id="a1", title="Client meeting", date=datetime(2024, 3, 10, 9, 0)))

    out = registry.handle(state, "/reschedule a1 2024-03-11T15:30") or ""
    assert "2024-03-11 15:30" in out
    assert state.appointments.get("a1").date == datetime(2024, 3, 11, 15, 30)

    assert registry.handle(state, "/remove appointment a1") == "Appointment removed."
    assert state.appointments.find("a1") is None
    assert "not found" in (registry.handle(state, "/remove appointment a1") or "")


def test_agenda_marks_hearings_and_deadlines(state) -> None:
    state.gate.connect()
    state.appointments.add(
        Appointment(
            id="a1",
            title="Hearing on motion",
            date=datetime(2024, 3, 10, 9, 0),
            appointment_type=AppointmentType.HEARING,
        )
    )
    state.appointments.add(Appointment(id="a2", title="Team sync", date=datetime(2024, 3, 10, 11, 0)))

    lines = (registry.handle(state, "/agenda 2024-03-10") or "").splitlines()

    hearing = next(line for line in lines if "Hearing on motion" in line)
    sync = next(line for line in lines if "Team sync" in line)
    assert hearing.lstrip().startswith("!")
    assert not sync.lstrip().startswith("!")
