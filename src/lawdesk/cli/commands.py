# src/lawdesk/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
import mimetypes
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any, cast

from ..agenda.aggregator import (
    EVENT_COLORS,
    MonthView,
    TaskAccent,
    UnifiedEvent,
    is_high_salience,
    is_overdue,
    task_accent,
)
from ..agenda.calendar_gate import connect_calendar
from ..core.clock import as_local
from ..core.errors import LawdeskError
from ..core.state import AppState
from ..records.lifecycle import LifecycleStore
from ..records.models import (
    Appointment,
    AppointmentType,
    Case,
    Client,
    Task,
    TaskStatus,
    TaskType,
    Visibility,
    new_id,
)
from ..records.record_api import (
    appointments_for_case,
    case_for_task,
    client_for_case,
    list_tasks,
    tasks_for_case,
)
from ..records.update_log import AttachmentUpload

CommandEmitter = Callable[[str], None]
CommandHandler4 = Callable[[AppState, list[str], str | None, str | None], str]
CommandHandler5 = Callable[
    [AppState, list[str], str | None, str | None, CommandEmitter | None], str
]
CommandHandler = CommandHandler4 | CommandHandler5

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        user_id: str | None = None,
        room_id: str | None = None,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Recoverable errors (wrong state, missing id, bad input)
        become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 5

        try:
            if nparams >= 5:
                h5 = cast(CommandHandler5, handler)
                return h5(state, args, user_id, room_id, emit)

            h4 = cast(CommandHandler4, handler)
            return h4(state, args, user_id, room_id)
        except (LawdeskError, ValueError) as e:
            logger.debug("/%s rejected: %s", name, e)
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

_VIEW_ALIASES = {
    "active": Visibility.ACTIVE,
    "archived": Visibility.ARCHIVED,
    "archive": Visibility.ARCHIVED,
    "trash": Visibility.TRASHED,
    "trashed": Visibility.TRASHED,
}


def _fmt_ts(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%d %H:%M")


def _parse_ts(raw: str) -> datetime | None:
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None


def _resolve_id(ids: list[str], raw: str) -> str:
    """Accept a full id or a unique prefix of one."""
    if raw in ids:
        return raw
    matches = [i for i in ids if i.startswith(raw)]
    return matches[0] if len(matches) == 1 else raw


def _store_and_id(state: AppState, kind: str, raw_id: str) -> tuple[LifecycleStore[Any], str]:
    store = state.store_for(kind)
    return store, _resolve_id([e.id for e in store.snapshot()], raw_id)


def _pop_case(state: AppState, args: list[str]) -> tuple[str | None, list[str]]:
    """Split an optional case=<id> token off the argument list."""
    case_id = None
    rest: list[str] = []
    for arg in args:
        if case_id is None and arg.startswith("case="):
            case_id = _resolve_id([c.id for c in state.cases.snapshot()], arg[len("case=") :])
        else:
            rest.append(arg)
    return case_id, rest


def _appointment_id(state: AppState, raw: str) -> str:
    return _resolve_id([a.id for a in state.appointments.all()], raw)


def _describe(state: AppState, entity: Any) -> str:
    now = state.clock.now()
    if isinstance(entity, Task):
        case = case_for_task(state.cases, entity)
        accent = task_accent(entity, now)
        flag = " (overdue)" if accent is TaskAccent.OVERDUE else ""
        case_s = f" | case: {case.name}" if case else ""
        return (
            f"{entity.id[:8]} [{entity.type.value}/{entity.status.value}] {entity.title}"
            f" | due {_fmt_ts(entity.due_date)}{flag}{case_s}"
        )
    if isinstance(entity, Case):
        client = client_for_case(state.clients, entity)
        return f"{entity.id[:8]} {entity.name} | client: {client.name if client else 'not found'}"
    if isinstance(entity, Client):
        return f"{entity.id[:8]} {entity.name}"
    return str(entity)


def cmd_help(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    return registry.build_help()


def cmd_status(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    now = state.clock.now()
    active = state.tasks.list_by_visibility(Visibility.ACTIVE)
    overdue = sum(1 for t in active if is_overdue(t, now))
    return (
        "Status:\n"
        f"  Clients: {len(state.clients)}  Cases: {len(state.cases)}  Tasks: {len(state.tasks)}"
        f"  Appointments: {len(state.appointments)}\n"
        f"  Active tasks: {len(active)} (overdue: {overdue})\n"
        f"  Calendar: {'CONNECTED' if state.gate.is_connected else 'DISCONNECTED'}"
    )


def cmd_list(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /list <task|case|client> [active|archived|trash] [pending|in_progress|done]
    """
    if not args:
        return "Usage: /list <task|case|client> [active|archived|trash] [status]"

    kind = args[0].lower()
    view = _VIEW_ALIASES.get(args[1].lower(), None) if len(args) > 1 else Visibility.ACTIVE
    if view is None:
        return "Unknown view. Use active, archived or trash."

    try:
        store = state.store_for(kind)
    except ValueError as e:
        return str(e)

    if kind == "task":
        status = TaskStatus(args[2].lower()) if len(args) > 2 and args[2].lower() in set(TaskStatus) else None
        items: list[Any] = list_tasks(state.tasks, view, status)
    else:
        items = store.list_by_visibility(view)

    if not items:
        return f"No {kind} records in the {view.value} view."
    lines = [f"{kind.capitalize()} records ({view.value}):"]
    lines.extend(f"  {_describe(state, e)}" for e in items)
    return "\n".join(lines)


def cmd_add(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /add client <name...>
    /add case <client_id|-> <name...>
    /add task <due> <task|deadline> [case=<case_id>] <title...>
    /add appointment <when> <type> [case=<case_id>] <title...>
    """
    usage = (
        "Usage:\n"
        "  /add client <name>\n"
        "  /add case <client_id|-> <name>\n"
        "  /add task <YYYY-MM-DD[THH:MM]> <task|deadline> [case=<case_id>] <title>\n"
        "  /add appointment <YYYY-MM-DDTHH:MM> <hearing|meeting|oral_argument|internal_deadline|other>"
        " [case=<case_id>] <title>"
    )
    if len(args) < 2:
        return usage

    kind = args[0].lower()

    if kind == "client":
        client = state.clients.add(Client(id=new_id(), name=" ".join(args[1:])))
        return f"Client added: {client.id}"

    if kind == "case" and len(args) >= 3:
        client_id = None
        if args[1] != "-":
            client_id = _resolve_id([c.id for c in state.clients.snapshot()], args[1])
        case = state.cases.add(Case(id=new_id(), name=" ".join(args[2:]), client_id=client_id))
        return f"Case added: {case.id}"

    if kind in ("task", "appointment") and len(args) >= 4:
        when = _parse_ts(args[1])
        if when is None:
            return f"Invalid date: {args[1]}"
        case_id, rest = _pop_case(state, args[3:])
        title = " ".join(rest)
        type_raw = args[2].lower()
        if not title:
            return usage

        if kind == "task":
            if type_raw not in set(TaskType):
                return "Task type must be task or deadline."
            task = state.tasks.add(
                Task(
                    id=new_id(),
                    title=title,
                    due_date=when,
                    type=TaskType(type_raw),
                    assigned_to=user_id or "",
                    case_id=case_id,
                )
            )
            return f"Task added: {task.id}"

        if type_raw not in set(AppointmentType):
            return f"Unknown appointment type: {type_raw}"
        app = state.appointments.add(
            Appointment(
                id=new_id(),
                title=title,
                date=when,
                appointment_type=AppointmentType(type_raw),
                case_id=case_id,
            )
        )
        return f"Appointment added: {app.id}"

    return usage


def cmd_done(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if not args:
        return "Usage: /done <task_id>"
    _, task_id = _store_and_id(state, "task", args[0])
    task = state.tasks.edit(task_id, status=TaskStatus.DONE)
    return f"Task marked done: {task.title}"


def cmd_trash(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """/trash <kind> <id> confirm"""
    if len(args) < 2:
        return "Usage: /trash <task|case|client> <id> confirm"
    store, entity_id = _store_and_id(state, args[0], args[1])
    if len(args) < 3 or args[2].lower() != "confirm":
        return f"Move {args[0]} {args[1]} to the trash? Repeat with: /trash {args[0]} {args[1]} confirm"
    store.soft_delete(entity_id)
    return f"{args[0].capitalize()} moved to the trash."


def cmd_restore(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if len(args) < 2:
        return "Usage: /restore <task|case|client> <id>"
    store, entity_id = _store_and_id(state, args[0], args[1])
    entity = store.restore(entity_id)
    return f"{args[0].capitalize()} restored ({entity.visibility.value})."


def cmd_archive(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if len(args) < 2:
        return "Usage: /archive <task|case|client> <id>"
    store, entity_id = _store_and_id(state, args[0], args[1])
    entity = store.toggle_archive(entity_id)
    return f"{args[0].capitalize()} is now {entity.visibility.value}."


def cmd_purge(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """/purge <kind> <id> confirm (irreversible)"""
    if len(args) < 2:
        return "Usage: /purge <task|case|client> <id> confirm"
    store, entity_id = _store_and_id(state, args[0], args[1])
    if len(args) < 3 or args[2].lower() != "confirm":
        return (
            "This action is irreversible. "
            f"Repeat with: /purge {args[0]} {args[1]} confirm"
        )
    store.permanently_delete(entity_id)
    return f"{args[0].capitalize()} permanently deleted."


def cmd_case(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """Case detail: client, linked tasks and appointments."""
    if not args:
        return "Usage: /case <case_id>"
    _, case_id = _store_and_id(state, "case", args[0])
    case = state.cases.get(case_id)
    client = client_for_case(state.clients, case)

    lines = [
        f"Case {case.name} ({case.visibility.value}, {case.status.value})",
        f"  Number: {case.case_number or '-'}  Court: {case.court or '-'}",
        f"  Client: {client.name if client else 'not found'}",
    ]
    if case.responsible_lawyers:
        lines.append(f"  Lawyers: {', '.join(case.responsible_lawyers)}")

    tasks = sorted(tasks_for_case(state.tasks, case.id), key=lambda t: as_local(t.due_date))
    lines.append(f"  Tasks ({len(tasks)}):")
    lines.extend(f"    {_describe(state, t)}" for t in tasks)

    apps = sorted(appointments_for_case(state.appointments, case.id), key=lambda a: as_local(a.date))
    lines.append(f"  Appointments ({len(apps)}):")
    lines.extend(
        f"    {a.id[:8]} {_fmt_ts(a.date)} {a.title} ({a.appointment_type.value})" for a in apps
    )
    return "\n".join(lines)


def cmd_reschedule(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if len(args) < 2:
        return "Usage: /reschedule <appointment_id> <YYYY-MM-DDTHH:MM>"
    when = _parse_ts(args[1])
    if when is None:
        return f"Invalid date: {args[1]}"
    app = state.appointments.edit(_appointment_id(state, args[0]), date=when)
    return f"Appointment {app.title} moved to {_fmt_ts(app.date)}."


def cmd_remove(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """/remove appointment <id> (appointments have no trash)"""
    if len(args) < 2 or args[0].lower() != "appointment":
        return "Usage: /remove appointment <appointment_id>"
    state.appointments.remove(_appointment_id(state, args[1]))
    return "Appointment removed."


def cmd_note(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if len(args) < 2:
        return "Usage: /note <task_id> <text>"
    _, task_id = _store_and_id(state, "task", args[0])
    state.updates.append(task_id, " ".join(args[1:]))
    return "Update added."


def cmd_attach(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    if len(args) < 2:
        return "Usage: /attach <task_id> <path>"
    _, task_id = _store_and_id(state, "task", args[0])
    path = Path(" ".join(args[1:])).expanduser()
    if not path.is_file():
        return f"File not found: {path}"

    mime, _ = mimetypes.guess_type(path.name)
    upload = AttachmentUpload(
        name=path.name,
        mime_type=mime or "application/octet-stream",
        size=path.stat().st_size,
        read=path.read_bytes,
    )
    if emit:
        with contextlib.suppress(Exception):
            emit(f"Attaching {path.name} ({upload.size} bytes)...")
    state.updates.attach(task_id, upload)
    return f'File "{path.name}" attached.'


def cmd_updates(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    if not args:
        return "Usage: /updates <task_id>"
    _, task_id = _store_and_id(state, "task", args[0])
    updates = state.updates.ordered(task_id)
    if not updates:
        return "No updates for this task yet."
    lines = [f"Updates for task {task_id[:8]}:"]
    for u in updates:
        att = f" [attachment: {u.attachment.name}]" if u.attachment else ""
        lines.append(f"  {_fmt_ts(u.timestamp)} {u.text}{att}")
    return "\n".join(lines)


def _format_events(events: list[UnifiedEvent]) -> list[str]:
    # "!" marks hearings and deadlines.
    return [
        f"  {'!' if is_high_salience(ev.category) else ' '} {ev.date.strftime('%H:%M')}"
        f" [{EVENT_COLORS[ev.category]}] {ev.title} ({ev.type})"
        for ev in events
    ]


def _format_month(view: MonthView) -> str:
    lines = [f"Agenda {view.year:04d}-{view.month:02d}:"]
    for day in view.days:
        if day is None or day not in view.events:
            continue
        lines.append(f"  {day.isoformat()}")
        lines.extend(_format_events(view.events_on(day)))
    if len(lines) == 1:
        lines.append("  (no events)")
    return "\n".join(lines)


def cmd_agenda(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    """
    /agenda             -> current month
    /agenda YYYY-MM     -> that month
    /agenda YYYY-MM-DD  -> that day
    """
    raw = args[0] if args else ""

    if len(raw) == 10:
        try:
            day = date.fromisoformat(raw)
        except ValueError:
            return f"Invalid date: {raw}"
        events = state.gate.expose(lambda: state.agenda.day(day))
        if events is None:
            return "Calendar is not connected. Use /connect first."
        if not events:
            return f"No events on {day.isoformat()}."
        return "\n".join([f"Agenda {day.isoformat()}:", *_format_events(events)])

    if raw:
        try:
            year_s, month_s = raw.split("-", 1)
            year, month = int(year_s), int(month_s)
        except ValueError:
            return f"Invalid month: {raw}"
        if not 1 <= month <= 12:
            return f"Invalid month: {raw}"
    else:
        now = state.clock.now()
        year, month = now.year, now.month

    view = state.gate.expose(lambda: state.agenda.month(year, month))
    if view is None:
        return "Calendar is not connected. Use /connect first."
    return _format_month(view)


def cmd_connect(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
    emit: CommandEmitter | None = None,
) -> str:
    if state.gate.is_connected:
        return "Calendar is already connected."
    if emit:
        with contextlib.suppress(Exception):
            emit("[CALENDAR] Connecting...")
    ok = asyncio.run(connect_calendar(state.gate, state.connector))
    return "Calendar connected." if ok else "Failed to connect the calendar."


def cmd_disconnect(
    state: AppState,
    args: list[str],
    user_id: str | None,
    room_id: str | None,
) -> str:
    state.gate.disconnect()
    return "Calendar disconnected."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show record counts and calendar state.")
registry.register(
    "list", cmd_list, help_text="List records: /list <task|case|client> [active|archived|trash] [status]."
)
registry.register("add", cmd_add, help_text="Create a client, case, task or appointment.")
registry.register("done", cmd_done, help_text="Mark a task as done: /done <task_id>.")
registry.register("trash", cmd_trash, help_text="Move to trash: /trash <kind> <id> confirm.")
registry.register("restore", cmd_restore, help_text="Restore from trash: /restore <kind> <id>.")
registry.register("archive", cmd_archive, help_text="Archive/unarchive: /archive <kind> <id>.")
registry.register(
    "purge", cmd_purge, help_text="Delete a trashed record for good: /purge <kind> <id> confirm."
)
registry.register("note", cmd_note, help_text="Add a task update: /note <task_id> <text>.")
registry.register("attach", cmd_attach, help_text="Attach a file (max 5MB): /attach <task_id> <path>.")
registry.register("case", cmd_case, help_text="Show a case with its client, tasks and appointments: /case <case_id>.")
registry.register("updates", cmd_updates, help_text="Show task updates: /updates <task_id>.")
registry.register(
    "reschedule", cmd_reschedule, help_text="Move an appointment: /reschedule <appointment_id> <YYYY-MM-DDTHH:MM>."
)
registry.register("remove", cmd_remove, help_text="Delete an appointment: /remove appointment <appointment_id>.")
registry.register("agenda", cmd_agenda, help_text="Show the agenda: /agenda [YYYY-MM | YYYY-MM-DD].")
registry.register("connect", cmd_connect, help_text="Connect the calendar.")
registry.register("disconnect", cmd_disconnect, help_text="Disconnect the calendar.")
