# src/lawdesk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "LAWDESK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    records_db_path: Path

    # ---- Update log ----
    attachment_max_bytes: int

    # ---- Calendar ----
    calendar_connected_default: bool
    calendar_connect_delay_seconds: float
    calendar_connect_success_rate: float

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "lawdesk") or "lawdesk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/lawdesk"))
        records_db_path = _env_path(_k("RECORDS_DB_PATH"), data_dir / "records.sqlite3")

        attachment_max_bytes = _env_int(_k("ATTACHMENT_MAX_BYTES"), 5 * 1024 * 1024)

        calendar_connected_default = _env_bool(_k("CALENDAR_CONNECTED"), False)
        calendar_connect_delay_seconds = _env_float(_k("CALENDAR_CONNECT_DELAY_SECONDS"), 1.5)
        calendar_connect_success_rate = _env_float(_k("CALENDAR_CONNECT_SUCCESS_RATE"), 0.7)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            records_db_path=records_db_path,
            attachment_max_bytes=attachment_max_bytes,
            calendar_connected_default=calendar_connected_default,
            calendar_connect_delay_seconds=calendar_connect_delay_seconds,
            calendar_connect_success_rate=calendar_connect_success_rate,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
