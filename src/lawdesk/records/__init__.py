"""
Record subsystem.

Components:
- models.py: immutable records (Client, Case, Task, Update, Appointment) and enums
- lifecycle.py: generic trash/archive/restore state machine per entity kind
- update_log.py: append-only update thread of each task, attachment validation
- appointment_book.py: plain CRUD collection of appointments
- record_store.py: SQLite-backed persistence (codec.py does the JSON mapping)
- record_api.py: weak-reference lookups and list helpers
"""
