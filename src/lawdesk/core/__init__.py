"""Ports, errors, clock and application state shared by all subsystems."""
