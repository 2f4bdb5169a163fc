"""Audit pipeline tasks: creation, refresh and recap editing."""

# Use explicit imports:
# from worker.tasks.audit import AuditOrchestrator
# from worker.tasks.refresh import RefreshCoordinator
