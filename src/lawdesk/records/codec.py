# src/lawdesk/records/codec.py

"""
Record <-> JSON-safe dict conversion used by the SQLite store.

Optional fields are always written (as null when unset), so a decoded record
compares equal to the one that was encoded.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from .models import (
    Appointment,
    AppointmentType,
    Attachment,
    CalendarSettings,
    Case,
    CaseStatus,
    Client,
    Entity,
    RecordKind,
    Task,
    TaskStatus,
    TaskType,
    Update,
)


def _ts_to_str(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def _str_to_ts(raw: Any) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(str(raw))


def _entity_fields(e: Entity) -> dict[str, Any]:
    return {
        "id": e.id,
        "is_deleted": e.is_deleted,
        "is_archived": e.is_archived,
        "deleted_at": _ts_to_str(e.deleted_at),
        "archived_at": _ts_to_str(e.archived_at),
        "created_at": _ts_to_str(e.created_at),
    }


def _entity_kwargs(d: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(d["id"]),
        "is_deleted": bool(d.get("is_deleted", False)),
        "is_archived": bool(d.get("is_archived", False)),
        "deleted_at": _str_to_ts(d.get("deleted_at")),
        "archived_at": _str_to_ts(d.get("archived_at")),
        "created_at": _str_to_ts(d.get("created_at")),
    }


def update_to_dict(u: Update) -> dict[str, Any]:
    out: dict[str, Any] = {"id": u.id, "timestamp": _ts_to_str(u.timestamp), "text": u.text}
    if u.attachment is not None:
        out["attachment"] = {
            "name": u.attachment.name,
            "mime_type": u.attachment.mime_type,
            "data": u.attachment.data,
        }
    else:
        out["attachment"] = None
    return out


def update_from_dict(d: dict[str, Any]) -> Update:
    att = d.get("attachment")
    attachment = None
    if isinstance(att, dict):
        attachment = Attachment(
            name=str(att["name"]),
            mime_type=str(att["mime_type"]),
            data=str(att["data"]),
        )
    ts = _str_to_ts(d.get("timestamp"))
    if ts is None:
        raise ValueError(f"update {d.get('id')} has no timestamp")
    return Update(id=str(d["id"]), timestamp=ts, text=str(d.get("text") or ""), attachment=attachment)


def record_to_dict(record: Any) -> dict[str, Any]:
    if isinstance(record, Task):
        return {
            **_entity_fields(record),
            "title": record.title,
            "due_date": _ts_to_str(record.due_date),
            "assigned_to": record.assigned_to,
            "type": record.type.value,
            "status": record.status.value,
            "case_id": record.case_id,
            "updates": [update_to_dict(u) for u in record.updates],
        }
    if isinstance(record, Case):
        return {
            **_entity_fields(record),
            "name": record.name,
            "client_id": record.client_id,
            "case_number": record.case_number,
            "court": record.court,
            "case_type": record.case_type,
            "status": record.status.value,
            "responsible_lawyers": list(record.responsible_lawyers),
        }
    if isinstance(record, Client):
        return {
            **_entity_fields(record),
            "name": record.name,
            "email": record.email,
            "phone": record.phone,
        }
    if isinstance(record, Appointment):
        return {
            "id": record.id,
            "title": record.title,
            "date": _ts_to_str(record.date),
            "appointment_type": record.appointment_type.value,
            "case_id": record.case_id,
            "notes": record.notes,
        }
    raise TypeError(f"Unsupported record type: {type(record).__name__}")


def record_from_dict(kind: str, d: dict[str, Any]) -> Any:
    k = RecordKind(kind)

    if k is RecordKind.TASK:
        due = _str_to_ts(d.get("due_date"))
        if due is None:
            raise ValueError(f"task {d.get('id')} has no due_date")
        return Task(
            **_entity_kwargs(d),
            title=str(d.get("title") or ""),
            due_date=due,
            assigned_to=str(d.get("assigned_to") or ""),
            type=TaskType.from_db(d.get("type")),
            status=TaskStatus.from_db(d.get("status")),
            case_id=d.get("case_id"),
            updates=tuple(update_from_dict(u) for u in d.get("updates") or []),
        )

    if k is RecordKind.CASE:
        return Case(
            **_entity_kwargs(d),
            name=str(d.get("name") or ""),
            client_id=d.get("client_id"),
            case_number=d.get("case_number"),
            court=d.get("court"),
            case_type=str(d.get("case_type") or ""),
            status=CaseStatus.from_db(d.get("status")),
            responsible_lawyers=tuple(str(x) for x in d.get("responsible_lawyers") or []),
        )

    if k is RecordKind.CLIENT:
        return Client(
            **_entity_kwargs(d),
            name=str(d.get("name") or ""),
            email=d.get("email"),
            phone=d.get("phone"),
        )

    date = _str_to_ts(d.get("date"))
    if date is None:
        raise ValueError(f"appointment {d.get('id')} has no date")
    return Appointment(
        id=str(d["id"]),
        title=str(d.get("title") or ""),
        date=date,
        appointment_type=AppointmentType.from_db(d.get("appointment_type"), AppointmentType.OTHER),
        case_id=d.get("case_id"),
        notes=d.get("notes"),
    )


def settings_to_dict(s: CalendarSettings) -> dict[str, Any]:
    return {"google_calendar_connected": s.google_calendar_connected}


def settings_from_dict(d: dict[str, Any]) -> CalendarSettings:
    return CalendarSettings(google_calendar_connected=bool(d.get("google_calendar_connected", False)))
