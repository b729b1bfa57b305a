# src/lawdesk/logging_setup.py

from __future__ import annotations

import logging
import logging.handlers
import sys
import warnings
from pathlib import Path

# Console floor per logger name prefix; the longest matching prefix wins.
# The file handler ignores these and keeps everything.
_CONSOLE_FLOORS: dict[str, int] = {
    "lawdesk": logging.DEBUG,
    # One line per saved/deleted row.
    "lawdesk.records.record_store": logging.WARNING,
    # Rejected transitions and edits are already the command's reply.
    "lawdesk.records.lifecycle": logging.INFO,
    "lawdesk.cli.commands": logging.INFO,
    # Pending tasks destroyed by asyncio.run() during /connect.
    "asyncio": logging.WARNING,
}
_THIRD_PARTY_FLOOR = logging.ERROR


def _console_floor(name: str) -> int:
    best, floor = -1, _THIRD_PARTY_FLOOR
    for prefix, level in _CONSOLE_FLOORS.items():
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > best:
            best, floor = len(prefix), level
    return floor


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable next to the command replies.

    Python warnings (captured as 'py.warnings') only pass when they are about
    sqlite3, which means RecordStore leaked a connection.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "py.warnings":
            return record.levelno >= logging.ERROR or "sqlite3" in record.getMessage()
        return record.levelno >= _console_floor(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/lawdesk",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 2 * 1024 * 1024,
    backups: int = 3,
) -> Path:
    """
    Console on stderr (filtered, short format) and a rotating lawdesk.log
    (full format, everything from file_level up).

    Call once from main(), before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "lawdesk.log"

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", datefmt="%H:%M:%S"))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s [%(threadName)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    # ResourceWarning is hidden by default; an unclosed sqlite3 connection
    # should reach the log.
    warnings.simplefilter("default", ResourceWarning)
    logging.captureWarnings(True)
    return log_file
