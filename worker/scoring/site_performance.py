"""Website performance group: site health, speed, mobile, SSL, HTTP/2, images."""

from worker.providers.models import SiteAuditResult, SpeedAnalysisResult, WebsiteScanResult
from worker.providers.speed_analysis import format_vitals
from worker.scoring.calculator import flag_status, status_for
from worker.scoring.models import (
    Impact,
    Measured,
    Metric,
    MetricGroup,
    Status,
    Unavailable,
    read,
)

LABELS = (
    "Site Health",
    "GTmetrix Performance",
    "Mobile Optimization",
    "Security & SSL",
    "HTTP/2 Support",
    "Image Optimization",
    "Alt Tags",
)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def build_site_performance(
    speed: SpeedAnalysisResult | None,
    scan: WebsiteScanResult | None,
    site_audit: SiteAuditResult | None = None,
) -> MetricGroup:
    metrics = [
        _site_health(scan, site_audit),
        _performance(speed),
        _mobile(scan),
        _ssl(scan),
        _http2(scan),
        _image_optimization(scan),
        _alt_tags(scan),
    ]
    return MetricGroup.from_metrics(metrics)


def _site_health(scan: WebsiteScanResult | None, site_audit: SiteAuditResult | None) -> Metric:
    reading = read(site_audit.score if site_audit else None)

    findings = []
    if scan and scan.content.empty_links:
        findings.append(
            f"{_plural(scan.content.empty_links, 'empty or broken link')} found "
            '(href="#" or javascript:void)'
        )
    if scan and scan.meta.noindex:
        findings.append("Homepage has a noindex tag, so search engines are told not to index it")

    if isinstance(reading, Measured):
        value = f"{reading.value}%"
        detail = (
            f"Site audit: {site_audit.errors} errors, {site_audit.warnings} warnings "
            f"across {site_audit.pages_crawled} pages."
        )
    else:
        value = "Requires Site Audit Project"
        detail = "Supply a site audit project id to pull live technical health data."

    return Metric(
        label="Site Health",
        value=value,
        status=status_for(reading, 90, 70),
        impact=Impact.HIGH,
        weighted=True,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        findings=findings,
        why=(
            "Technical issues quietly turn prospects away. Every crawl error or broken page "
            "is a buyer who never sees your offer."
        ),
        fix=(
            "Run a full technical audit and resolve broken links, redirect chains and crawl errors."
        ),
        expected_impact="A clean site gets more prospects to your conversion pages.",
        difficulty="Medium",
    )


def _performance(speed: SpeedAnalysisResult | None) -> Metric:
    reading = read(speed.performance_score if speed else None)

    findings = []
    if speed:
        vitals = format_vitals(speed.core_web_vitals)
        if vitals["lcp"]:
            findings.append(f"Largest Contentful Paint: {vitals['lcp']} (target: under 2.5s)")
        if vitals["fcp"]:
            findings.append(f"First Contentful Paint: {vitals['fcp']}")
        if vitals["tbt"]:
            findings.append(f"Total Blocking Time: {vitals['tbt']}")
        if speed.blocking_resources:
            urls = ", ".join(r.url for r in speed.blocking_resources)
            findings.append(
                f"{_plural(len(speed.blocking_resources), 'render-blocking resource')}: {urls}"
            )

    if isinstance(reading, Measured):
        grade = f" | Grade: {speed.grade}" if speed.grade else ""
        detail = f"Desktop: {speed.desktop_score}%{grade}"
    else:
        detail = "Analyzing..."

    return Metric(
        label="GTmetrix Performance",
        value=f"{reading.value}%" if isinstance(reading, Measured) else "Analyzing...",
        status=status_for(reading, 90, 50),
        impact=Impact.HIGH,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        findings=findings,
        why=(
            "Over half of mobile visitors leave a page that takes more than 3 seconds. "
            "Every second of delay costs leads."
        ),
        fix=(
            "Compress images, lazy-load below the fold, enable caching and "
            "defer non-critical JavaScript."
        ),
        expected_impact="Sub-3-second loads can cut bounce rates by 20-30%.",
        difficulty="Medium",
    )


def _mobile(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.meta.has_viewport if scan else None)

    if isinstance(reading, Measured):
        value = "Yes" if reading.value else "No"
    else:
        value = "Checking..."
    if scan is not None:
        detail = (
            "Responsive viewport declared on the homepage."
            if scan.meta.has_viewport
            else "No responsive viewport declared on the homepage."
        )
    else:
        detail = "Checking..."
    ok = isinstance(reading, Measured) and reading.value

    return Metric(
        label="Mobile Optimization",
        value=value,
        status=flag_status(reading),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        why="Google indexes mobile-first: your mobile site is your site for ranking purposes.",
        fix=(
            "No action needed."
            if ok
            else "Adopt a responsive layout and fix mobile usability issues."
        ),
        expected_impact="Keeps eligibility for mobile rankings, which cover most searches.",
        difficulty="N/A" if ok else "Medium",
    )


def _ssl(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.ssl_valid if scan else None)
    ok = isinstance(reading, Measured) and reading.value

    if isinstance(reading, Unavailable):
        value, detail = "Checking...", "HTTPS could not be verified yet."
    elif ok:
        value, detail = "Valid", "HTTPS is active and the certificate is valid."
    else:
        value = "Invalid"
        detail = "Site is not served over HTTPS; browsers will flag it as insecure."

    return Metric(
        label="Security & SSL",
        value=value,
        status=flag_status(reading),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        why="SSL is a ranking signal and browsers warn visitors away from non-secure sites.",
        fix=(
            "No action needed. Make sure the certificate auto-renews."
            if ok
            else "Install an SSL certificate."
        ),
        expected_impact="Keeps trust signals and avoids browser security warnings.",
        difficulty="N/A" if ok else "Low",
    )


def _http2(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.http2 if scan else None)
    ok = isinstance(reading, Measured) and reading.value
    return Metric(
        label="HTTP/2 Support",
        value="Enabled" if ok else "Not Detected",
        status=flag_status(reading, when_false=Status.WARNING),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail="HTTP/2 multiplexes requests over one connection for faster delivery.",
        why="HTTP/2 loads pages noticeably faster than HTTP/1.1.",
        fix="No action needed." if ok else "Enable HTTP/2 on your web server or CDN.",
        expected_impact="Faster delivery, especially for resource-heavy pages.",
        difficulty="N/A" if ok else "Low",
    )


def _image_optimization(scan: WebsiteScanResult | None) -> Metric:
    # Share of images still missing alt text; no signal on an image-free page
    total_images = scan.images.total if scan else 0
    reading = read(scan.images.missing_alt_pct if total_images else None)

    return Metric(
        label="Image Optimization",
        value=(
            f"{reading.value}% Improvement Needed"
            if isinstance(reading, Measured)
            else "Estimated"
        ),
        status=status_for(reading, 10, 30, invert=True),
        impact=Impact.HIGH,
        estimated=isinstance(reading, Unavailable),
        detail=(
            f"{_plural(total_images, 'image')} detected on homepage."
            if total_images
            else "Image audit data."
        ),
        why="Unoptimized images are the most common cause of slow pages.",
        fix="Serve WebP, add responsive srcset and compress every image above 100KB.",
        expected_impact="Can cut load time by 40-60% on image-heavy pages.",
        difficulty="Low",
    )


def _alt_tags(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.images.missing_alt_pct if scan else None)
    if isinstance(reading, Measured):
        value = f"{scan.images.missing_alt} of {scan.images.total} missing"
        detail = f"{reading.value}% of images are missing alt text."
    else:
        value, detail = "Estimated", "Checking..."

    return Metric(
        label="Alt Tags",
        value=value,
        status=status_for(reading, 10, 30, invert=True),
        impact=Impact.MEDIUM,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        findings=list(scan.images.missing_alt_examples[:5]) if scan else [],
        why="Alt text earns image search traffic and is required for WCAG compliance.",
        fix="Add descriptive, keyword-relevant alt text to every image.",
        expected_impact="Opens a traffic channel through image search.",
        difficulty="Low",
    )
