"""Normalized provider outputs.

Each model is the declared output shape of one adapter. They are persisted on
the audit document (``sources``) so a refresh can rebuild a shared metric group
from every provider's latest data, and each one carries the
``has_real_content`` predicate the orchestrator uses for pending decisions.
"""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, Field


class ProviderName(StrEnum):
    """Providers tracked for pending/retry decisions, in canonical order."""

    WEBSITE_SCAN = "website_scan"
    SPEED_ANALYSIS = "speed_analysis"
    SEARCH_METRICS = "search_metrics"
    BUSINESS_LISTING = "business_listing"


# Optional deep technical scan; never pending, never retried.
SITE_AUDIT = "site_audit"

TRACKED_PROVIDERS: tuple[ProviderName, ...] = tuple(ProviderName)


@dataclass(frozen=True)
class AuditTarget:
    """What every adapter is asked to look at."""

    url: str
    company_name: str = ""
    deep_scan_id: str | None = None


@dataclass(eq=False)
class ProviderError(Exception):
    """Typed failure raised by an adapter."""

    provider: str
    message: str

    def __str__(self) -> str:
        return f"{self.provider}: {self.message}"


# Website scan


class ImageStats(BaseModel):
    total: int = 0
    missing_alt: int = 0
    missing_alt_pct: int = 0
    missing_alt_examples: list[str] = Field(default_factory=list)


class PageMeta(BaseModel):
    title: str | None = None
    title_length: int = 0
    description: str | None = None
    description_length: int = 0
    has_h1: bool = False
    multiple_h1: bool = False
    h1_text: str | None = None
    noindex: bool = False
    canonical: str | None = None
    has_viewport: bool = False


class SchemaStats(BaseModel):
    types: list[str] = Field(default_factory=list)
    has_organization: bool = False
    has_local_business: bool = False
    has_faq: bool = False
    has_same_as: bool = False
    missing_types: list[str] = Field(default_factory=list)


class OpenGraphTags(BaseModel):
    title: bool = False
    description: bool = False
    image: bool = False
    complete: bool = False
    actual_title: str | None = None
    missing_tags: list[str] = Field(default_factory=list)


class TwitterCardTags(BaseModel):
    card: bool = False
    title: bool = False
    image: bool = False
    complete: bool = False
    missing_tags: list[str] = Field(default_factory=list)


class ContentStats(BaseModel):
    ratio: int = 0
    word_count: int = 0
    internal_links: int = 0
    total_links: int = 0
    empty_links: int = 0
    share_buttons: bool = False


class BlogInfo(BaseModel):
    detected: bool = False
    path: str | None = None
    last_post_date: str | None = None
    last_post_days_ago: int | None = None
    recent_titles: list[str] = Field(default_factory=list)


class WebsiteScanResult(BaseModel):
    """Signals parsed from the target's homepage HTML."""

    final_url: str
    status_code: int
    html_length: int = 0
    ssl_valid: bool = False
    http2: bool | None = None
    images: ImageStats = Field(default_factory=ImageStats)
    meta: PageMeta = Field(default_factory=PageMeta)
    schema_markup: SchemaStats = Field(default_factory=SchemaStats)
    open_graph: OpenGraphTags = Field(default_factory=OpenGraphTags)
    twitter_cards: TwitterCardTags = Field(default_factory=TwitterCardTags)
    content: ContentStats = Field(default_factory=ContentStats)
    blog: BlogInfo = Field(default_factory=BlogInfo)

    @property
    def has_real_content(self) -> bool:
        return self.html_length > 0 and self.status_code < 400


# Speed analysis


class CoreWebVitals(BaseModel):
    lcp_ms: float | None = None
    tbt_ms: float | None = None
    cls: float | None = None
    fcp_ms: float | None = None


class ResourceInfo(BaseModel):
    url: str
    resource_type: str = ""


class SpeedAnalysisResult(BaseModel):
    """Lab performance report for the homepage.

    Desktop only; mobile, HTTPS and image signals come from the homepage scan.
    """

    performance_score: int | None = None
    desktop_score: int | None = None
    structure_score: int | None = None
    grade: str | None = None
    core_web_vitals: CoreWebVitals = Field(default_factory=CoreWebVitals)
    fully_loaded_ms: int | None = None
    page_bytes: int | None = None
    blocking_resources: list[ResourceInfo] = Field(default_factory=list)

    @property
    def has_real_content(self) -> bool:
        return self.performance_score is not None


# Search metrics


class DomainRanks(BaseModel):
    rank: int = 0
    organic_keywords: int = 0
    organic_traffic: int = 0
    organic_cost: float = 0.0


class BacklinkOverview(BaseModel):
    total: int = 0
    referring_domains: int = 0
    follow_links: int = 0
    nofollow_links: int = 0


class KeywordRanking(BaseModel):
    keyword: str
    position: int = 0
    volume: int = 0
    traffic: int = 0
    difficulty: int = 0


class Competitor(BaseModel):
    domain: str
    common_keywords: int = 0
    organic_keywords: int = 0
    organic_traffic: int = 0


class SearchMetricsResult(BaseModel):
    """Domain-level search visibility data."""

    domain: str
    domain_ranks: DomainRanks | None = None
    backlinks: BacklinkOverview | None = None
    top_keywords: list[KeywordRanking] = Field(default_factory=list)
    competitors: list[Competitor] = Field(default_factory=list)

    @property
    def has_real_content(self) -> bool:
        ranks = self.domain_ranks
        if ranks is not None and (ranks.rank > 0 or ranks.organic_keywords > 0):
            return True
        if self.backlinks is not None and self.backlinks.total > 0:
            return True
        return len(self.top_keywords) > 0


# Business listing


class ReviewExcerpt(BaseModel):
    author: str = ""
    rating: float = 0
    time_ago: str = ""
    text: str = ""


class BusinessListing(BaseModel):
    """Business profile as surfaced on the report."""

    name: str
    address: str | None = None
    phone: str | None = None
    business_status: str = "UNKNOWN"
    rating: float = 0
    review_count: int = 0
    reviews: list[ReviewExcerpt] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    has_photos: bool = False
    photo_count: int = 0
    website: str | None = None
    maps_url: str | None = None
    is_verified: bool = False


class BusinessListingResult(BaseModel):
    found: bool = False
    listing: BusinessListing | None = None

    @property
    def has_real_content(self) -> bool:
        return self.found and self.listing is not None


# Deep technical scan


class SiteAuditResult(BaseModel):
    score: int | None = None
    errors: int = 0
    warnings: int = 0
    notices: int = 0
    pages_crawled: int = 0

    @property
    def has_real_content(self) -> bool:
        return self.score is not None


ProviderResult = (
    WebsiteScanResult
    | SpeedAnalysisResult
    | SearchMetricsResult
    | BusinessListingResult
    | SiteAuditResult
)
