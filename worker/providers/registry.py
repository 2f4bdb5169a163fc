"""Assemble the adapters used by one audit pipeline from settings."""

from dataclasses import dataclass

import httpx

from api.config import Settings
from worker.providers.base import ProviderAdapter, ProviderConfig
from worker.providers.business_listing import BusinessListingAdapter
from worker.providers.models import ProviderName
from worker.providers.search_metrics import SearchMetricsAdapter
from worker.providers.site_audit import SiteAuditAdapter
from worker.providers.speed_analysis import SpeedAnalysisAdapter
from worker.providers.website_scan import WebsiteScanAdapter


@dataclass
class ProviderSet:
    """Tracked adapters by name, plus the optional deep-scan adapter."""

    adapters: dict[ProviderName, ProviderAdapter]
    site_audit: ProviderAdapter | None = None
    check_timeout_seconds: float = 3.0
    check_transport: httpx.AsyncBaseTransport | None = None


def build_provider_set(settings: Settings) -> ProviderSet:
    """Build adapters with their keys and timeouts from ``settings``."""
    user_agent = settings.scan_user_agent
    return ProviderSet(
        adapters={
            ProviderName.WEBSITE_SCAN: WebsiteScanAdapter(
                ProviderConfig(
                    timeout_seconds=settings.website_scan_timeout_seconds,
                    user_agent=user_agent,
                )
            ),
            ProviderName.SPEED_ANALYSIS: SpeedAnalysisAdapter(
                ProviderConfig(
                    api_key=settings.gtmetrix_api_key,
                    timeout_seconds=settings.speed_analysis_timeout_seconds,
                    user_agent=user_agent,
                ),
                poll_interval_seconds=settings.speed_analysis_poll_interval_seconds,
            ),
            ProviderName.SEARCH_METRICS: SearchMetricsAdapter(
                ProviderConfig(
                    api_key=settings.semrush_api_key,
                    timeout_seconds=settings.search_metrics_timeout_seconds,
                    user_agent=user_agent,
                ),
                database=settings.semrush_database,
            ),
            ProviderName.BUSINESS_LISTING: BusinessListingAdapter(
                ProviderConfig(
                    api_key=settings.google_api_key,
                    timeout_seconds=settings.business_listing_timeout_seconds,
                    user_agent=user_agent,
                )
            ),
        },
        site_audit=SiteAuditAdapter(
            ProviderConfig(
                api_key=settings.semrush_api_key,
                timeout_seconds=settings.site_audit_timeout_seconds,
                user_agent=user_agent,
            )
        ),
        check_timeout_seconds=settings.existence_check_timeout_seconds,
    )
