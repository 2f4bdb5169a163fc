"""Audit document: the single persisted record per submission."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from worker.providers.models import (
    SITE_AUDIT,
    BusinessListing,
    BusinessListingResult,
    KeywordRanking,
    ProviderName,
    ProviderResult,
    SearchMetricsResult,
    SiteAuditResult,
    SpeedAnalysisResult,
    WebsiteScanResult,
)
from worker.scoring.models import MetricGroup

RECAP_TABS = ("website", "seo", "local", "content", "social")


def utc_now() -> datetime:
    return datetime.now(UTC)


class AuditMeta(BaseModel):
    """Submission parameters. Written once at creation."""

    url: str
    company_name: str = ""
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    deep_scan_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class RecapTab(BaseModel):
    """Editor-written narrative for one report tab."""

    summary: str = ""
    risks: list[str] = Field(default_factory=list)
    opportunity: str = ""


class AuditSources(BaseModel):
    """Last usable output of every provider, plus the existence checks.

    Groups fed by several providers are always rebuilt from this full
    snapshot, never from a single provider's partial view.
    """

    website_scan: WebsiteScanResult | None = None
    speed_analysis: SpeedAnalysisResult | None = None
    search_metrics: SearchMetricsResult | None = None
    business_listing: BusinessListingResult | None = None
    site_audit: SiteAuditResult | None = None
    has_sitemap: bool | None = None
    has_robots: bool | None = None

    def get(self, provider: str) -> ProviderResult | None:
        return getattr(self, str(provider))

    def put(self, provider: str, result: ProviderResult) -> None:
        if str(provider) not in (*ProviderName, SITE_AUDIT):
            raise KeyError(provider)
        setattr(self, str(provider), result)


class AuditDocument(BaseModel):
    """Everything known about one audit.

    ``version`` increases on every write after creation; stores use it to
    reject a write based on a stale read.
    """

    id: str
    version: int = 0
    meta: AuditMeta

    site_performance: MetricGroup | None = None
    search_visibility: MetricGroup | None = None
    content: MetricGroup | None = None
    social: MetricGroup | None = None
    local_entity: MetricGroup | None = None
    keywords: list[KeywordRanking] = Field(default_factory=list)
    business_listing: BusinessListing | None = None

    provider_errors: dict[str, str] = Field(default_factory=dict)
    pending_providers: list[str] = Field(default_factory=list)
    retry_counts: dict[str, int] = Field(default_factory=dict)
    unavailable_providers: list[str] = Field(default_factory=list)
    recap: dict[str, RecapTab] = Field(default_factory=dict)

    sources: AuditSources = Field(default_factory=AuditSources)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_public_dict(self) -> dict[str, Any]:
        """JSON-ready view for API responses; raw provider data stays internal."""
        return self.model_dump(mode="json", exclude={"sources"})
