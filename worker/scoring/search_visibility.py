"""Search visibility group and the keyword ranking list."""

import math

from worker.providers.models import KeywordRanking, SearchMetricsResult
from worker.scoring.calculator import flag_status, status_for
from worker.scoring.models import (
    UNAVAILABLE,
    Impact,
    Measured,
    Metric,
    MetricGroup,
    Status,
    Unavailable,
    read,
)

LABELS = (
    "Organic Keywords",
    "Branded Traffic Share",
    "Indexation Efficiency",
    "Domain Authority Score",
    "Backlink Profile",
    "XML Sitemap Status",
    "Robots.txt Configuration",
)


def estimate_domain_authority(rank: int) -> int | None:
    """Rough 1-100 authority score from a global traffic rank."""
    if rank <= 0:
        return None
    return min(100, max(1, round(100 - math.log10(rank) * 15)))


def build_search_visibility(
    search: SearchMetricsResult | None,
    has_sitemap: bool | None,
    has_robots: bool | None,
) -> MetricGroup:
    ranks = search.domain_ranks if search else None
    backlinks = search.backlinks if search else None
    competitors = search.competitors if search else []
    top_keywords = search.top_keywords if search else []

    keywords = read(ranks.organic_keywords if ranks else None)
    authority = read(estimate_domain_authority(ranks.rank) if ranks else None)
    total_backlinks = read(backlinks.total if backlinks else None)

    keyword_findings = [
        f'"{kw.keyword}": position #{kw.position} ({kw.volume:,} monthly searches)'
        for kw in top_keywords[:3]
    ]
    if top_keywords and ranks and ranks.organic_cost:
        keyword_findings.append(f"Organic traffic value: ${round(ranks.organic_cost):,}/mo")

    competitor_findings = [
        f"{c.domain}: {c.common_keywords:,} shared keywords, {c.organic_traffic:,} monthly traffic"
        for c in competitors[:3]
        if c.common_keywords and c.organic_traffic
    ]

    backlink_findings = []
    if backlinks:
        if backlinks.follow_links and backlinks.nofollow_links:
            backlink_findings.append(
                f"{backlinks.follow_links:,} dofollow / {backlinks.nofollow_links:,} nofollow links"
            )
        if backlinks.referring_domains:
            backlink_findings.append(f"{backlinks.referring_domains:,} unique referring domains")

    if competitors:
        second = competitors[1].domain if len(competitors) > 1 else "other competitors"
        keyword_fix = (
            f"Close the keyword gap against {competitors[0].domain} and {second} "
            "to capture their traffic."
        )
    else:
        keyword_fix = (
            "Find the high-value keywords competitors rank for and build content to claim them."
        )

    if isinstance(keywords, Measured):
        keyword_detail = (
            f"{keywords.value:,} keywords driving ~{ranks.organic_traffic:,} monthly visits."
            if ranks.organic_traffic
            else f"{keywords.value:,} keywords ranking."
        )
    else:
        keyword_detail = "Search data unavailable for this domain; it may be new or very small."

    if isinstance(total_backlinks, Measured):
        backlink_detail = (
            f"{total_backlinks.value:,} total links from {backlinks.referring_domains:,} domains."
            if backlinks.referring_domains
            else f"{total_backlinks.value:,} total backlinks."
        )
    else:
        backlink_detail = "Backlink data unavailable for this domain yet."

    sitemap = read(has_sitemap)
    robots = read(has_robots)

    metrics = [
        Metric(
            label="Organic Keywords",
            value=f"{keywords.value:,}" if isinstance(keywords, Measured) else "Estimated",
            status=status_for(keywords, 500, 200),
            impact=Impact.HIGH,
            estimated=isinstance(keywords, Unavailable),
            detail=keyword_detail,
            findings=keyword_findings,
            why=(
                "Every keyword you don't rank for is a buyer choosing a competitor. "
                "High-intent search leads convert far better than outbound."
            ),
            fix=keyword_fix,
            expected_impact="High-intent keywords put qualified prospects in front of you.",
            difficulty="Medium",
        ),
        Metric(
            label="Branded Traffic Share",
            value="Estimated",
            status=status_for(UNAVAILABLE, 35, 20),
            impact=Impact.HIGH,
            estimated=True,
            detail="Connect Search Console for exact branded traffic data.",
            why="When prospects search your name and find little, trust drops before sales calls.",
            fix="Invest in brand visibility: PR mentions, thought leadership, consistent content.",
            expected_impact="Strong branded search means warmer prospects and shorter cycles.",
            difficulty="High",
        ),
        Metric(
            label="Indexation Efficiency",
            value="Estimated",
            status=status_for(UNAVAILABLE, 90, 70),
            impact=Impact.HIGH,
            estimated=True,
            detail="Connect Search Console for exact indexation data.",
            why="A page Google hasn't indexed cannot appear in search results.",
            fix="Review unindexed pages for thin content, crawl blocks or noindex tags.",
            expected_impact="Indexing every quality page unlocks more ranking opportunities.",
            difficulty="Low",
        ),
        Metric(
            label="Domain Authority Score",
            value=f"{authority.value}/100" if isinstance(authority, Measured) else "Estimated",
            status=status_for(authority, 50, 30),
            impact=Impact.MEDIUM,
            estimated=isinstance(authority, Unavailable),
            detail=(
                f"Search rank: #{ranks.rank:,} globally."
                if ranks and ranks.rank > 0
                else "Search data unavailable for this domain."
            ),
            findings=competitor_findings,
            why="Higher authority lets your pages outrank competitors for the same keywords.",
            fix="Earn quality backlinks through guest posts, digital PR and partnerships.",
            expected_impact="Reaching 45+ significantly improves ranking potential.",
            difficulty="High",
        ),
        Metric(
            label="Backlink Profile",
            value=(
                f"{total_backlinks.value:,}"
                if isinstance(total_backlinks, Measured)
                else "Estimated"
            ),
            status=status_for(total_backlinks, 1000, 200),
            impact=Impact.MEDIUM,
            estimated=isinstance(total_backlinks, Unavailable),
            detail=backlink_detail,
            findings=backlink_findings,
            why="Quality backlinks are endorsements that push your rankings above competitors.",
            fix="Disavow toxic links and run link-building aimed at high-authority domains.",
            expected_impact="Better link quality lifts rankings for mid-to-high difficulty terms.",
            difficulty="High",
        ),
        _presence_metric(
            label="XML Sitemap Status",
            reading=sitemap,
            found_value="Found",
            missing_status=Status.POOR,
            found_detail="Sitemap detected at /sitemap.xml.",
            missing_detail="No sitemap found at /sitemap.xml.",
            why="A sitemap helps search engines discover and understand your site structure.",
            missing_fix="Create and submit an XML sitemap.",
            expected_impact="Keeps crawl discovery efficient.",
        ),
        _presence_metric(
            label="Robots.txt Configuration",
            reading=robots,
            found_value="Yes",
            missing_status=Status.WARNING,
            found_detail="Crawl directives found.",
            missing_detail="No robots.txt found.",
            why="Robots.txt controls which pages search engines can access.",
            missing_fix="Create a robots.txt file.",
            expected_impact="Makes sure search engines reach every important page.",
        ),
    ]
    return MetricGroup.from_metrics(metrics)


def _presence_metric(
    label: str,
    reading: Measured[bool] | Unavailable,
    found_value: str,
    missing_status: Status,
    found_detail: str,
    missing_detail: str,
    why: str,
    missing_fix: str,
    expected_impact: str,
) -> Metric:
    if isinstance(reading, Unavailable):
        value, detail, fix, difficulty = "Checking...", "Could not be checked.", missing_fix, "Low"
    elif reading.value:
        value, detail, fix, difficulty = found_value, found_detail, "No action needed.", "N/A"
    else:
        value, detail, fix, difficulty = "Not Found", missing_detail, missing_fix, "Low"
    return Metric(
        label=label,
        value=value,
        status=flag_status(reading, when_false=missing_status),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        why=why,
        fix=fix,
        expected_impact=expected_impact,
        difficulty=difficulty,
    )


def build_keywords(search: SearchMetricsResult | None) -> list[KeywordRanking]:
    """Top keyword rankings in provider order."""
    if search is None:
        return []
    return [kw.model_copy() for kw in search.top_keywords]
