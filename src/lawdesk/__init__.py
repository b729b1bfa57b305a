"""
Law-office records core.

Subpackages:
- records: entities, lifecycle store, update log, persistence
- agenda: unified event aggregation and the calendar gate
- cli / connectors: composition root and console surface
"""
