"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends, Request

from api.config import Settings, get_settings
from api.services.audit_service import AuditService
from api.store import AuditStore
from worker.providers.registry import ProviderSet
from worker.sinks.sheets import AuditLogger
from worker.tasks.audit import AuditOrchestrator
from worker.tasks.refresh import RefreshCoordinator

__all__ = ["SettingsDep", "StoreDep", "AuditServiceDep"]


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_store(request: Request) -> AuditStore:
    """Audit store created by the app factory."""
    return request.app.state.store


def get_provider_set(request: Request) -> ProviderSet:
    return request.app.state.providers


def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger


StoreDep = Annotated[AuditStore, Depends(get_store)]
ProviderSetDep = Annotated[ProviderSet, Depends(get_provider_set)]
AuditLoggerDep = Annotated[AuditLogger, Depends(get_audit_logger)]


def get_audit_service(
    settings: SettingsDep,
    store: StoreDep,
    providers: ProviderSetDep,
    audit_logger: AuditLoggerDep,
) -> AuditService:
    orchestrator = AuditOrchestrator(providers)
    return AuditService(
        store=store,
        orchestrator=orchestrator,
        refresher=RefreshCoordinator(
            store,
            orchestrator,
            retry_ceiling=settings.audit_retry_ceiling,
            max_write_attempts=settings.audit_write_max_attempts,
        ),
        audit_logger=audit_logger,
        max_write_attempts=settings.audit_write_max_attempts,
    )


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
