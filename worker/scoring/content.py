"""Content performance group."""

from worker.providers.models import WebsiteScanResult
from worker.scoring.calculator import flag_status, status_for
from worker.scoring.models import Impact, Measured, Metric, MetricGroup, Status, Unavailable, read

LABELS = (
    "Blog Page Exists",
    "Content Freshness",
    "Meta Descriptions",
    "H1 Tags",
    "Avg. Time on Page",
    "Bounce Rate",
    "Readability Score",
    "Word Count (top pages)",
    "Internal Links / Page",
    "Content-to-Code Ratio",
    "Duplicate Content",
)

META_MIN_LENGTH = 120
META_MAX_LENGTH = 160


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _estimated(label: str, impact: Impact, detail: str, why: str, fix: str,
               expected_impact: str, difficulty: str) -> Metric:
    return Metric(
        label=label,
        value="Estimated",
        status=Status.WARNING,
        impact=impact,
        estimated=True,
        detail=detail,
        why=why,
        fix=fix,
        expected_impact=expected_impact,
        difficulty=difficulty,
    )


def build_content(scan: WebsiteScanResult | None) -> MetricGroup:
    blog = scan.blog if scan else None
    meta = scan.meta if scan else None
    content = scan.content if scan else None

    blog_reading = read(blog.detected if blog else None)
    freshness = read(blog.last_post_days_ago if blog else None)
    description = read(meta.description_length if meta and meta.description else None)
    h1 = read(meta.has_h1 if meta else None)
    words = read(content.word_count if content else None)
    links = read(content.internal_links if content else None)
    ratio = read(content.ratio if content else None)

    blog_found = isinstance(blog_reading, Measured) and blog_reading.value
    blog_path = blog.path if blog and blog.path else "/blog"

    blog_findings = []
    if blog and blog.path:
        blog_findings.append(f"Content page found at: {blog.path}")
    if blog and blog.last_post_date:
        blog_findings.append(
            f"Last detected post date: {blog.last_post_date} ({blog.last_post_days_ago} days ago)"
        )
    if blog:
        blog_findings.extend(f'Recent post: "{title}"' for title in blog.recent_titles)
    if blog_found and not (blog and blog.last_post_date):
        blog_findings.append(
            "Blog page detected but no post dates could be extracted; it may render with JavaScript"
        )

    # Freshness has bespoke day thresholds (lower is better)
    if isinstance(freshness, Measured):
        days = freshness.value
        fresh_status = status_for(freshness, 14, 45, invert=True)
        fresh_detail = (
            "Content is being published regularly."
            if days <= 14
            else "Content is aging; search engines favor active publishers."
            if days <= 45
            else "Stale content signals an inactive site to search engines."
        )
    else:
        fresh_status = Status.WARNING
        fresh_detail = (
            "Blog detected but no post dates could be extracted."
            if blog_found
            else "No blog page found to analyze content freshness."
        )

    meta_findings = []
    if meta and meta.description:
        length = meta.description_length
        meta_findings.append(f'Your meta description: "{_truncate(meta.description, 120)}"')
        if length < META_MIN_LENGTH:
            meta_findings.append(
                f"Length: {length} chars; expand to 150-160 chars for full SERP display"
            )
        elif length > META_MAX_LENGTH:
            meta_findings.append(f"Length: {length} chars; may be truncated (target: 150-160)")
        else:
            meta_findings.append(f"Length: {length} chars; good length for search results")
    elif meta is not None:
        meta_findings.append("No meta description on homepage; Google will generate one")

    if isinstance(description, Measured):
        in_range = META_MIN_LENGTH <= description.value <= META_MAX_LENGTH
        meta_status = Status.GOOD if in_range else Status.WARNING
        meta_value = f"{description.value} chars"
    elif meta is not None:
        meta_status, meta_value = Status.POOR, "Missing"
    else:
        meta_status, meta_value = Status.WARNING, "Checking..."

    h1_findings = []
    if meta and meta.h1_text:
        h1_findings.append(f'Your H1: "{meta.h1_text}"')
    if meta and meta.multiple_h1:
        h1_findings.append("Multiple H1 tags detected; best practice is one H1 per page")
    if meta and meta.title:
        h1_findings.append(f'Page title: "{_truncate(meta.title, 80)}" ({meta.title_length} chars)')

    multiple_h1 = bool(meta and meta.multiple_h1)
    if isinstance(h1, Unavailable):
        h1_value, h1_status, h1_detail = "Checking...", Status.WARNING, "Checking..."
    elif h1.value and multiple_h1:
        h1_value, h1_status = "Multiple Found", Status.WARNING
        h1_detail = "Multiple H1 tags detected; use only one per page."
    elif h1.value:
        h1_value, h1_status, h1_detail = "Present", Status.GOOD, "Homepage has a single H1 tag."
    else:
        h1_value, h1_status, h1_detail = "Missing", Status.POOR, "No H1 heading found on homepage."
    h1_ok = h1_status == Status.GOOD

    metrics = [
        Metric(
            label="Blog Page Exists",
            value="Yes" if blog_found else ("Not Found" if blog else "Checking..."),
            status=flag_status(blog_reading),
            impact=Impact.FOUNDATIONAL,
            weighted=True,
            estimated=isinstance(blog_reading, Unavailable),
            detail=(
                f"Content page detected at {blog_path}."
                if blog_found
                else "No blog, news or resource section found."
            ),
            why="A blog is the foundation of content marketing.",
            fix="No action needed." if blog_found else "Create a blog section for ongoing content.",
            expected_impact="Gives an ongoing content strategy somewhere to live.",
            difficulty="N/A" if blog_found else "Medium",
        ),
        Metric(
            label="Content Freshness",
            value=(
                f"{freshness.value} days since last post"
                if isinstance(freshness, Measured)
                else "Estimated"
            ),
            status=fresh_status,
            impact=Impact.HIGH,
            weighted=True,
            estimated=isinstance(freshness, Unavailable),
            detail=fresh_detail,
            findings=blog_findings,
            why=(
                "Stale content signals an inactive business. Prospects see outdated pages "
                "and move on to competitors who look alive."
            ),
            fix="Publish at least twice a month with content that answers buyers' real questions.",
            expected_impact="Active publishers see 20-40% more organic traffic.",
            difficulty="Medium",
        ),
        Metric(
            label="Meta Descriptions",
            value=meta_value,
            status=meta_status,
            impact=Impact.HIGH,
            estimated=meta is None,
            detail=(
                "Homepage meta description found."
                if isinstance(description, Measured)
                else "No meta description on homepage."
            ),
            findings=meta_findings,
            why="The meta description is your ad copy in search results.",
            fix="Write descriptions that sell the click, starting with high-traffic pages.",
            expected_impact="Better descriptions can lift click-through rates 5-10%.",
            difficulty="Low",
        ),
        Metric(
            label="H1 Tags",
            value=h1_value,
            status=h1_status,
            impact=Impact.FOUNDATIONAL,
            estimated=isinstance(h1, Unavailable),
            detail=h1_detail,
            findings=h1_findings,
            why="H1 tags tell search engines the primary topic of each page.",
            fix=(
                "No action needed."
                if h1_ok
                else "Consolidate to a single H1 per page."
                if multiple_h1
                else "Add a unique H1 heading to every page."
            ),
            expected_impact="Clear page topic signals for search engines.",
            difficulty="N/A" if h1_ok else "Low",
        ),
        _estimated(
            "Avg. Time on Page",
            Impact.MEDIUM,
            "Requires Google Analytics integration.",
            "Low time on page suggests content isn't engaging visitors.",
            "Improve content depth, add visuals and tighten formatting.",
            "Reaching a 2m+ average improves engagement signals.",
            "Medium",
        ),
        _estimated(
            "Bounce Rate",
            Impact.HIGH,
            "Requires Google Analytics integration.",
            "A high bounce rate means paying for visitors who leave without converting.",
            "Speed up the site, sharpen above-the-fold messaging and add clear next steps.",
            "Cutting bounce rate below 50% converts more of your existing traffic.",
            "Medium",
        ),
        _estimated(
            "Readability Score",
            Impact.MEDIUM,
            "Full readability analysis requires content parsing.",
            "Complex content limits your audience.",
            "Simplify sentence structure and replace jargon with plain language.",
            "Broader accessibility can increase engagement.",
            "Low",
        ),
        Metric(
            label="Word Count (top pages)",
            value=f"~{words.value:,} words" if isinstance(words, Measured) else "Estimated",
            status=status_for(words, 1200, 600),
            impact=Impact.HIGH,
            estimated=isinstance(words, Unavailable),
            detail=(
                f"Homepage contains approximately {words.value:,} words."
                if isinstance(words, Measured)
                else "Word count unavailable."
            ),
            why="Thin pages don't convince anyone to buy.",
            fix="Expand key landing pages to 1,200+ words of buyer-focused detail.",
            expected_impact="In-depth pages rank higher and convert better.",
            difficulty="Medium",
        ),
        Metric(
            label="Internal Links / Page",
            value=f"{links.value} found" if isinstance(links, Measured) else "Estimated",
            status=status_for(links, 10, 3),
            impact=Impact.MEDIUM,
            estimated=isinstance(links, Unavailable),
            detail=(
                f"{links.value} internal links detected on homepage."
                if isinstance(links, Measured)
                else "Internal link count unavailable."
            ),
            why="Internal links spread page authority and help search engines find content.",
            fix="Add 3-5 contextual internal links per page, prioritizing high-value pages.",
            expected_impact="Better internal linking improves crawl depth.",
            difficulty="Low",
        ),
        Metric(
            label="Content-to-Code Ratio",
            value=f"{ratio.value}%" if isinstance(ratio, Measured) else "Estimated",
            status=status_for(ratio, 25, 15),
            impact=Impact.MEDIUM,
            estimated=isinstance(ratio, Unavailable),
            detail=(
                f"{ratio.value}% of the page is readable content (target: 25%+)."
                if isinstance(ratio, Measured)
                else "Ratio unavailable."
            ),
            why="A low ratio means more markup and scripts than actual content.",
            fix="Trim unnecessary scripts and add more substantive content.",
            expected_impact="A 25%+ ratio signals content-rich pages.",
            difficulty="Medium",
        ),
        _estimated(
            "Duplicate Content",
            Impact.HIGH,
            "Full duplicate analysis requires a multi-page crawl.",
            "Duplicate content confuses search engines about which page to rank.",
            "Write unique content for each page and add canonical tags.",
            "Resolving duplicates allows proper indexation.",
            "Low",
        ),
    ]
    return MetricGroup.from_metrics(metrics)
