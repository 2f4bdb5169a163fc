"""Refresh: retry only the providers an audit is still waiting on."""

from datetime import UTC, datetime

import structlog

from api.exceptions import NotFoundError
from api.models.audit import AuditDocument
from api.store import AuditStore, update_with_retry
from worker.providers.models import AuditTarget
from worker.tasks.audit import (
    EXISTENCE_CHECKS,
    AuditOrchestrator,
    affected_groups,
    apply_outcome,
    rebuild_groups,
)
from worker.tasks.fanout import OutcomeKind, ProviderOutcome

logger = structlog.get_logger(__name__)


def apply_refresh(
    doc: AuditDocument,
    outcomes: dict[str, ProviderOutcome],
    checks: dict[str, bool | None],
    retry_ceiling: int,
) -> list[str]:
    """Fold one refresh cycle's results into ``doc``; returns rebuilt groups.

    Only providers still pending on ``doc`` are touched, so this can be
    re-applied to a freshly reloaded document after a write conflict.
    """
    attempted = [name for name in outcomes if name in doc.pending_providers]
    recovered = [
        name
        for name in attempted
        if apply_outcome(doc, name, outcomes[name]) is OutcomeKind.PRESENT
    ]
    groups = affected_groups(recovered)

    for check, value in checks.items():
        if value is not None and getattr(doc.sources, check) is None:
            setattr(doc.sources, check, value)
            groups.add("search_visibility")

    rebuilt = rebuild_groups(doc, groups)

    for name in attempted:
        if name not in doc.pending_providers:
            continue
        count = doc.retry_counts.get(name, 0) + 1
        doc.retry_counts[name] = count
        if count >= retry_ceiling:
            doc.pending_providers.remove(name)
            if name not in doc.unavailable_providers:
                doc.unavailable_providers.append(name)
            logger.warning(
                "provider_abandoned",
                audit_id=doc.id,
                provider=name,
                retries=count,
                error=doc.provider_errors.get(name),
            )

    doc.updated_at = datetime.now(UTC)
    return rebuilt


class RefreshCoordinator:
    """Re-fetches pending providers and persists the merged result."""

    def __init__(
        self,
        store: AuditStore,
        orchestrator: AuditOrchestrator,
        retry_ceiling: int = 3,
        max_write_attempts: int = 3,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.retry_ceiling = retry_ceiling
        self.max_write_attempts = max_write_attempts

    async def refresh(self, audit_id: str) -> AuditDocument:
        doc = await self.store.get(audit_id)
        if doc is None:
            raise NotFoundError("Audit", audit_id)
        if not doc.pending_providers or not doc.meta.url:
            return doc

        # Checks that could not be answered at creation get another try
        unknown_checks = [c for c in EXISTENCE_CHECKS if getattr(doc.sources, c) is None]
        pending = list(doc.pending_providers)
        logger.info("refresh_started", audit_id=audit_id, pending=pending)

        # No deep_scan_id: the deep scan is never retried
        target = AuditTarget(url=doc.meta.url, company_name=doc.meta.company_name)
        outcomes, checks = await self.orchestrator.collect(
            target,
            pending,
            unknown_checks,
        )

        rebuilt: list[str] = []

        def mutate(fresh: AuditDocument) -> None:
            rebuilt[:] = apply_refresh(fresh, outcomes, checks, self.retry_ceiling)

        updated = await update_with_retry(
            self.store, audit_id, mutate, max_attempts=self.max_write_attempts
        )
        logger.info(
            "refresh_completed",
            audit_id=audit_id,
            rebuilt=rebuilt,
            pending=updated.pending_providers,
            version=updated.version,
        )
        return updated
