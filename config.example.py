# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep local overrides in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "LAWDESK_APP_NAME": "App display name (default: lawdesk).",
    "LAWDESK_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "LAWDESK_DATA_DIR": "Local data directory, also holds lawdesk.log (default: .local/lawdesk).",
    "LAWDESK_RECORDS_DB_PATH": "Records SQLite path (default: <data_dir>/records.sqlite3).",
    # Update log
    "LAWDESK_ATTACHMENT_MAX_BYTES": "Largest accepted attachment in bytes (default: 5242880).",
    # Calendar
    "LAWDESK_CALENDAR_CONNECTED": "Initial calendar state when nothing is stored yet (true/false).",
    "LAWDESK_CALENDAR_CONNECT_DELAY_SECONDS": "Simulated connect latency (default: 1.5).",
    "LAWDESK_CALENDAR_CONNECT_SUCCESS_RATE": "Simulated connect success probability (default: 0.7).",
}
