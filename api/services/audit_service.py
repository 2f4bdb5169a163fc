"""Audit service: create, read/refresh and recap editing."""

import structlog

from api.exceptions import BadRequestError, NotFoundError, StorageError
from api.logging import bind_audit_context
from api.models.audit import AuditDocument, RecapTab
from api.schemas.audit import AuditCreateRequest
from api.store import AuditStore, update_with_retry
from worker.sinks.sheets import AuditLogger
from worker.tasks.audit import AUDIT_ID_LENGTH, AuditOrchestrator, generate_audit_id
from worker.tasks.recap import merge_recap, sanitize_recap
from worker.tasks.refresh import RefreshCoordinator

logger = structlog.get_logger(__name__)

MAX_ID_ATTEMPTS = 5


def validate_audit_id(audit_id: str) -> str:
    if len(audit_id) != AUDIT_ID_LENGTH:
        raise BadRequestError(
            f"Audit id must be exactly {AUDIT_ID_LENGTH} characters", field="id"
        )
    return audit_id


class AuditService:
    """Service for audit operations."""

    def __init__(
        self,
        store: AuditStore,
        orchestrator: AuditOrchestrator,
        refresher: RefreshCoordinator,
        audit_logger: AuditLogger,
        max_write_attempts: int = 3,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.refresher = refresher
        self.audit_logger = audit_logger
        self.max_write_attempts = max_write_attempts

    async def create_audit(self, payload: AuditCreateRequest) -> AuditDocument:
        """Run the providers and persist the new document under a fresh id."""
        doc = await self.orchestrator.create(
            url=payload.url,
            company_name=payload.company_name or "",
            contact_name=payload.contact_name or "",
            email=payload.email or "",
            phone=payload.phone or "",
            deep_scan_id=payload.deep_scan_id,
        )

        for _ in range(MAX_ID_ATTEMPTS):
            if await self.store.create(doc):
                bind_audit_context(doc.id)
                logger.info(
                    "audit_created",
                    url=doc.meta.url,
                    pending=doc.pending_providers,
                )
                return doc
            logger.warning("audit_id_collision", audit_id=doc.id)
            doc = doc.model_copy(update={"id": generate_audit_id()})

        raise StorageError("create")

    async def get_audit(self, audit_id: str, refresh: bool = False) -> AuditDocument:
        validate_audit_id(audit_id)
        bind_audit_context(audit_id)
        if refresh:
            return await self.refresher.refresh(audit_id)

        doc = await self.store.get(audit_id)
        if doc is None:
            raise NotFoundError("Audit", audit_id)
        return doc

    async def patch_recap(self, audit_id: str, raw: dict) -> dict[str, RecapTab]:
        """Sanitize ``raw`` and merge it tab-by-tab into the stored recap."""
        validate_audit_id(audit_id)
        bind_audit_context(audit_id)
        patch = sanitize_recap(raw)

        def mutate(doc: AuditDocument) -> None:
            doc.recap = merge_recap(doc.recap, patch)

        updated = await update_with_retry(
            self.store, audit_id, mutate, max_attempts=self.max_write_attempts
        )
        logger.info("recap_updated", tabs=sorted(patch))
        return updated.recap
