# src/lawdesk/records/record_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from .codec import record_from_dict, record_to_dict, settings_from_dict, settings_to_dict
from .models import CalendarSettings, RecordKind

logger = logging.getLogger(__name__)

_SETTINGS_KEY = "calendar"


class RecordStore:
    """
    SQLite record store (the persistence collaborator of the lifecycle stores).

    One row per record: (kind, id) primary key plus a JSON payload. Rows are
    upserted in place, so rowid order is insertion order and load_records()
    returns records in the order they were first saved.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "records.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_records()
        except sqlite3.Error:
            total = -1
        logger.info("RecordStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    kind TEXT NOT NULL,
                    id TEXT NOT NULL,
                    payload TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    PRIMARY KEY (kind, id)
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL DEFAULT '{}'
                )
                """
            )

            cur.execute("CREATE INDEX IF NOT EXISTS idx_records_kind ON records(kind)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _payload_to_str(payload: dict[str, Any]) -> str:
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def _str_to_payload(s: str | None) -> dict[str, Any]:
        if not s:
            return {}
        val = json.loads(s)
        return val if isinstance(val, dict) else {}

    # ---- public API ----

    def count_records(self, kind: str | None = None) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            if kind is None:
                cur.execute("SELECT COUNT(*) FROM records")
            else:
                cur.execute("SELECT COUNT(*) FROM records WHERE kind = ?", (str(kind),))
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def load_records(self, kind: str) -> list[Any]:
        kind = RecordKind(kind).value
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT id, payload FROM records WHERE kind = ? ORDER BY rowid ASC", (kind,))
            out: list[Any] = []
            for row in cur.fetchall():
                try:
                    out.append(record_from_dict(kind, self._str_to_payload(row["payload"])))
                except (ValueError, KeyError, TypeError):
                    logger.exception("Skipping unreadable %s record id=%s", kind, row["id"])
            return out
        finally:
            conn.close()

    def save_record(self, kind: str, record: Any) -> None:
        kind = RecordKind(kind).value
        payload = self._payload_to_str(record_to_dict(record))
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO records(kind, id, payload, created_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(kind, id) DO UPDATE SET payload = excluded.payload
                """,
                (kind, str(record.id), payload, time.time()),
            )
            conn.commit()
            logger.debug("Record saved kind=%s id=%s", kind, record.id)
        finally:
            conn.close()

    def delete_record(self, kind: str, record_id: str) -> None:
        kind = RecordKind(kind).value
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM records WHERE kind = ? AND id = ?", (kind, str(record_id)))
            conn.commit()
            logger.debug("Record deleted kind=%s id=%s", kind, record_id)
        finally:
            conn.close()

    def load_settings(self) -> CalendarSettings | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT payload FROM settings WHERE key = ?", (_SETTINGS_KEY,))
            row = cur.fetchone()
            if row is None:
                return None
            return settings_from_dict(self._str_to_payload(row["payload"]))
        finally:
            conn.close()

    def save_settings(self, settings: CalendarSettings) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO settings(key, payload) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET payload = excluded.payload
                """,
                (_SETTINGS_KEY, self._payload_to_str(settings_to_dict(settings))),
            )
            conn.commit()
        finally:
            conn.close()
