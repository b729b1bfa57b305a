"""
Agenda subsystem.

Components:
- aggregator.py: merges appointments and open tasks into per-day event buckets
- calendar_gate.py: calendar-connected gate and the connector stub
"""
