"""Audit creation: fan out to every provider, score, assemble the document."""

import secrets
import string
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

import structlog

from api.exceptions import BadRequestError
from api.models.audit import AuditDocument, AuditMeta, AuditSources
from worker.providers.checks import check_exists, robots_url, sitemap_url
from worker.providers.models import SITE_AUDIT, TRACKED_PROVIDERS, AuditTarget, ProviderName
from worker.providers.registry import ProviderSet
from worker.scoring.content import build_content
from worker.scoring.local_entity import build_business_listing, build_local_entity
from worker.scoring.search_visibility import build_keywords, build_search_visibility
from worker.scoring.site_performance import build_site_performance
from worker.scoring.social import build_social
from worker.tasks.fanout import OutcomeKind, ProviderOutcome, classify, gather_outcomes

logger = structlog.get_logger(__name__)

AUDIT_ID_LENGTH = 10
AUDIT_ID_ALPHABET = string.ascii_lowercase + string.digits
MAX_URL_LENGTH = 2048

EXISTENCE_CHECKS = ("has_sitemap", "has_robots")

GROUP_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    ProviderName.WEBSITE_SCAN: ("site_performance", "content", "social", "local_entity"),
    ProviderName.SPEED_ANALYSIS: ("site_performance",),
    ProviderName.SEARCH_METRICS: ("search_visibility", "keywords"),
    ProviderName.BUSINESS_LISTING: ("local_entity", "business_listing"),
    SITE_AUDIT: ("site_performance",),
}

GROUP_BUILDERS: dict[str, Callable[[AuditSources], Any]] = {
    "site_performance": lambda s: build_site_performance(
        s.speed_analysis, s.website_scan, s.site_audit
    ),
    "search_visibility": lambda s: build_search_visibility(
        s.search_metrics, s.has_sitemap, s.has_robots
    ),
    "content": lambda s: build_content(s.website_scan),
    "social": lambda s: build_social(s.website_scan),
    "local_entity": lambda s: build_local_entity(s.business_listing, s.website_scan),
    "keywords": lambda s: build_keywords(s.search_metrics),
    "business_listing": lambda s: build_business_listing(s.business_listing),
}

# Rebuild order; dict order above is relied on
GROUP_ORDER = tuple(GROUP_BUILDERS)


def generate_audit_id() -> str:
    return "".join(secrets.choice(AUDIT_ID_ALPHABET) for _ in range(AUDIT_ID_LENGTH))


def normalize_url(raw: str | None) -> str:
    """Trim and make sure the target URL carries a scheme."""
    url = (raw or "").strip()
    if not url:
        raise BadRequestError("url is required", field="url")
    if len(url) > MAX_URL_LENGTH:
        raise BadRequestError(f"url must be at most {MAX_URL_LENGTH} characters", field="url")
    if not urlparse(url).scheme or "://" not in url:
        url = f"https://{url}"
    return url


def affected_groups(providers: Iterable[str]) -> set[str]:
    groups: set[str] = set()
    for provider in providers:
        groups.update(GROUP_DEPENDENCIES.get(provider, ()))
    return groups


def rebuild_groups(doc: AuditDocument, groups: Iterable[str]) -> list[str]:
    """Rebuild each named group once, in fixed order, from ``doc.sources``."""
    wanted = set(groups)
    rebuilt = []
    for field in GROUP_ORDER:
        if field in wanted:
            setattr(doc, field, GROUP_BUILDERS[field](doc.sources))
            rebuilt.append(field)
    return rebuilt


def apply_outcome(doc: AuditDocument, name: str, outcome: ProviderOutcome) -> OutcomeKind:
    """Record one provider outcome on ``doc``.

    Usable data replaces the provider's stored source and clears its error and
    pending state. A failure records the error. Failures and empty results both
    leave a tracked provider pending; the optional deep scan never is.
    """
    name = str(name)
    kind = classify(outcome)
    if kind is OutcomeKind.PRESENT:
        doc.sources.put(name, outcome.result)
        doc.provider_errors.pop(name, None)
        if name in doc.pending_providers:
            doc.pending_providers.remove(name)
        return kind

    if kind is OutcomeKind.FAILED:
        doc.provider_errors[name] = outcome.error
    if name in TRACKED_PROVIDERS and name not in doc.pending_providers:
        doc.pending_providers.append(name)
        doc.pending_providers.sort(key=TRACKED_PROVIDERS.index)
    return kind


class AuditOrchestrator:
    """Runs provider calls for an audit and assembles the document."""

    def __init__(self, providers: ProviderSet):
        self.providers = providers

    async def collect(
        self,
        target: AuditTarget,
        providers: Iterable[str],
        checks: Iterable[str] = (),
    ) -> tuple[dict[str, ProviderOutcome], dict[str, bool | None]]:
        """Fetch the named providers and existence checks concurrently.

        The deep scan joins in only when the target carries a project id.
        Returns provider outcomes and check results keyed by name.
        """
        calls: dict[str, Awaitable[Any]] = {}
        for name in providers:
            adapter = self.providers.adapters.get(name)
            if adapter is not None:
                calls[name] = adapter.fetch(target)
        if target.deep_scan_id and self.providers.site_audit is not None:
            calls[SITE_AUDIT] = self.providers.site_audit.fetch(target)

        check_urls = {"has_sitemap": sitemap_url, "has_robots": robots_url}
        check_names = list(checks)
        for check in check_names:
            calls[check] = check_exists(
                check_urls[check](target.url),
                timeout=self.providers.check_timeout_seconds,
                transport=self.providers.check_transport,
            )

        outcomes = await gather_outcomes(calls)
        check_results = {
            check: getattr(outcomes.pop(check), "result", None) for check in check_names
        }
        return outcomes, check_results

    async def create(
        self,
        url: str | None,
        company_name: str = "",
        contact_name: str = "",
        email: str = "",
        phone: str = "",
        deep_scan_id: str | None = None,
    ) -> AuditDocument:
        """Build a new, unsaved audit document for ``url``."""
        normalized = normalize_url(url)
        target = AuditTarget(
            url=normalized,
            company_name=company_name.strip(),
            deep_scan_id=(deep_scan_id or "").strip() or None,
        )

        logger.info("audit_started", url=normalized, deep_scan=bool(target.deep_scan_id))
        outcomes, checks = await self.collect(target, TRACKED_PROVIDERS, EXISTENCE_CHECKS)

        doc = AuditDocument(
            id=generate_audit_id(),
            meta=AuditMeta(
                url=normalized,
                company_name=target.company_name,
                contact_name=contact_name.strip(),
                email=email.strip(),
                phone=phone.strip(),
                deep_scan_id=target.deep_scan_id,
            ),
        )
        doc.sources.has_sitemap = checks.get("has_sitemap")
        doc.sources.has_robots = checks.get("has_robots")

        for name, outcome in outcomes.items():
            apply_outcome(doc, name, outcome)
        rebuild_groups(doc, GROUP_ORDER)
        doc.updated_at = datetime.now(UTC)

        logger.info(
            "audit_assembled",
            url=normalized,
            pending=doc.pending_providers,
            errors=sorted(doc.provider_errors),
        )
        return doc
