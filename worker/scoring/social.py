"""Social and AI-search group.

Sharing previews and the machine-readable signals AI search tools rely on
both come from the homepage scan, so they are scored together.
"""

from worker.providers.models import WebsiteScanResult
from worker.scoring.calculator import flag_status, status_for
from worker.scoring.models import Impact, Measured, Metric, MetricGroup, Status, Unavailable, read

LABELS = (
    "Open Graph Tags",
    "Twitter Cards",
    "Social Share Buttons",
    "Brand Consistency",
    "Structured Data",
    "FAQ Schema",
    "AI Search Mentions",
    "Citation Likelihood",
)


def build_social(scan: WebsiteScanResult | None) -> MetricGroup:
    metrics = [
        _open_graph(scan),
        _twitter_cards(scan),
        _share_buttons(scan),
        Metric(
            label="Brand Consistency",
            value="Estimated",
            status=Status.WARNING,
            impact=Impact.HIGH,
            estimated=True,
            detail="Requires cross-platform analysis.",
            why="Inconsistent branding across platforms weakens recognition.",
            fix="Standardize profile images, bios and brand messaging on every platform.",
            expected_impact="Consistent branding makes every channel reinforce the others.",
            difficulty="Low",
        ),
        _structured_data(scan),
        _faq_schema(scan),
        Metric(
            label="AI Search Mentions",
            value="Estimated",
            status=Status.WARNING,
            impact=Impact.HIGH,
            estimated=True,
            detail="Requires AI answer-engine monitoring.",
            why=(
                "Buyers increasingly ask AI assistants first; "
                "if you aren't cited, a competitor is."
            ),
            fix="Publish well-structured content that answers buyer questions directly.",
            expected_impact="AI citations open a channel of pre-qualified prospects.",
            difficulty="High",
        ),
        Metric(
            label="Citation Likelihood",
            value="Estimated",
            status=Status.WARNING,
            impact=Impact.HIGH,
            estimated=True,
            detail="Requires AI answer-engine monitoring.",
            why="AI search tools rarely reference thin or unstructured content.",
            fix="Create definitive, data-rich pages that can serve as a primary source.",
            expected_impact="More citations means a growing referral channel.",
            difficulty="High",
        ),
    ]
    return MetricGroup.from_metrics(metrics)


def _open_graph(scan: WebsiteScanResult | None) -> Metric:
    og = scan.open_graph if scan else None
    if og is None:
        return Metric(
            label="Open Graph Tags",
            value="Checking...",
            status=Status.WARNING,
            impact=Impact.MEDIUM,
            estimated=True,
            detail="Open Graph tags could not be checked.",
            why="A broken share preview costs credibility before the click happens.",
            fix="Add og:title, og:description and og:image tags to all pages.",
            expected_impact="Rich previews can multiply click-through from social shares.",
            difficulty="Low",
        )

    findings = []
    if og.missing_tags:
        findings.append(f"Missing tags: {', '.join(og.missing_tags)}")
    if og.actual_title:
        title = og.actual_title if len(og.actual_title) <= 80 else og.actual_title[:77] + "..."
        findings.append(f'og:title is set to: "{title}"')
    if og.complete:
        findings.append("All Open Graph tags are properly configured")

    partial = og.title or og.description
    if og.complete:
        value, status = "Complete", Status.GOOD
        detail = "All OG tags present; shared links show rich previews."
    elif partial:
        value, status = "Partial", Status.WARNING
        detail = f"Missing: {', '.join(og.missing_tags)}"
    else:
        value, status, detail = "Missing", Status.POOR, "OG tags not detected."

    return Metric(
        label="Open Graph Tags",
        value=value,
        status=status,
        impact=Impact.MEDIUM,
        detail=detail,
        findings=findings,
        why="A broken share preview costs credibility before the click happens.",
        fix=(
            f"Add {', '.join(og.missing_tags)} to your homepage and key pages."
            if og.missing_tags
            else "No action needed."
        ),
        expected_impact="Rich previews can multiply click-through from social shares.",
        difficulty="Low",
    )


def _twitter_cards(scan: WebsiteScanResult | None) -> Metric:
    tw = scan.twitter_cards if scan else None
    if tw is None:
        value, status, detail, findings = "Checking...", Status.WARNING, "Could not be checked.", []
        fix = "Add twitter:card, twitter:title and twitter:image meta tags."
    else:
        findings = [f"Missing tags: {', '.join(tw.missing_tags)}"] if tw.missing_tags else []
        if tw.complete:
            value, status = "Complete", Status.GOOD
            detail = "Twitter Card tags properly configured."
        elif tw.card:
            value, status = "Partial", Status.WARNING
            detail = f"Missing: {', '.join(tw.missing_tags)}"
        else:
            value, status, detail = "Missing", Status.POOR, "No twitter:card meta tags found."
        fix = (
            f"Add {', '.join(tw.missing_tags)} meta tags."
            if tw.missing_tags
            else "No action needed."
        )

    return Metric(
        label="Twitter Cards",
        value=value,
        status=status,
        impact=Impact.MEDIUM,
        estimated=tw is None,
        detail=detail,
        findings=findings,
        why="Twitter Cards turn shared links on X into rich media previews.",
        fix=fix,
        expected_impact="Enables rich previews on X.",
        difficulty="Low",
    )


def _share_buttons(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.content.share_buttons if scan else None)
    ok = isinstance(reading, Measured) and reading.value
    if isinstance(reading, Unavailable):
        value, detail = "Estimated", "Requires a homepage scan."
    elif ok:
        value, detail = "Found", "Share links detected on the homepage."
    else:
        value, detail = "Not Found", "No share links detected on the homepage."

    return Metric(
        label="Social Share Buttons",
        value=value,
        # Buttons often live on posts rather than the homepage
        status=flag_status(reading, when_false=Status.WARNING),
        impact=Impact.MEDIUM,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        why="Without share buttons visitors have no easy way to spread your content.",
        fix="No action needed." if ok else "Add share buttons to blog posts and key landing pages.",
        expected_impact="Shareable pages earn noticeably more social engagement.",
        difficulty="N/A" if ok else "Low",
    )


def _structured_data(scan: WebsiteScanResult | None) -> Metric:
    schema = scan.schema_markup if scan else None
    count = read(len(schema.types) if schema else None)

    findings = []
    if schema and schema.types:
        findings.append(f"Found: {', '.join(schema.types)}")
    if schema and schema.missing_types:
        findings.append(f"Missing: {', '.join(schema.missing_types)}")

    if isinstance(count, Measured) and count.value:
        value = f"{count.value} type{'s' if count.value > 1 else ''} found"
        detail = f"Detected: {', '.join(schema.types)}"
    elif isinstance(count, Measured):
        value, detail = "None detected", "No structured data found on homepage."
    else:
        value, detail = "Checking...", "Could not be checked."

    return Metric(
        label="Structured Data",
        value=value,
        status=status_for(count, 3, 1),
        impact=Impact.HIGH,
        estimated=isinstance(count, Unavailable),
        detail=detail,
        findings=findings,
        why="Structured data helps search engines and AI systems understand your content.",
        fix=(
            f"Add {', '.join(schema.missing_types)} schema to relevant pages."
            if schema and schema.missing_types
            else "Implement Organization, FAQ, Service and LocalBusiness schema."
        ),
        expected_impact="Full structured data enables rich results and clearer AI understanding.",
        difficulty="Medium",
    )


def _faq_schema(scan: WebsiteScanResult | None) -> Metric:
    reading = read(scan.schema_markup.has_faq if scan else None)
    ok = isinstance(reading, Measured) and reading.value
    if isinstance(reading, Unavailable):
        value = "Checking..."
    else:
        value = "Present" if ok else "Not Found"
    return Metric(
        label="FAQ Schema",
        value=value,
        status=flag_status(reading),
        impact=Impact.MEDIUM,
        estimated=isinstance(reading, Unavailable),
        detail="FAQPage markup on the homepage.",
        why="FAQ schema earns rich results and gives AI systems content they can quote directly.",
        fix=(
            "No action needed."
            if ok
            else "Add FAQ schema to service pages and common-question pages."
        ),
        expected_impact="FAQ rich results take up more room on the results page.",
        difficulty="N/A" if ok else "Low",
    )
