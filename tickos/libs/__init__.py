"""Script-facing libraries. Each one is bound to an explicit `Scheduler`."""
