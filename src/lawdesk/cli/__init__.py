"""
Command-line surface.

Components:
- bootstrap: composition root building AppState
- commands: slash-command registry shared by connectors
- main: `lawdesk` entrypoint
"""
