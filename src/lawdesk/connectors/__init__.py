"""User-facing connectors that feed lines into the command registry."""
