"""Local and entity group, plus the denormalized business listing record."""

from worker.providers.models import BusinessListing, BusinessListingResult, WebsiteScanResult
from worker.scoring.calculator import flag_status, status_for
from worker.scoring.models import Impact, Measured, Metric, MetricGroup, Status, Unavailable, read

LABELS = (
    "NAP Consistency",
    "Verified Google Business Profile",
    "Google Reviews",
    "Schema Markup",
    "Knowledge Graph",
    "Entity Associations",
    "Brand SERP Control",
    "Wikidata",
    "Same-As Links",
    "Entity Descriptions",
)

# (label, impact, detail, why, fix, expected_impact, difficulty)
_ESTIMATED = {
    "NAP Consistency": (
        Impact.HIGH,
        "A full NAP audit needs a multi-directory check.",
        "Inconsistent business details across directories erode trust.",
        "Make name, address and phone identical on every listing.",
        "Consistent NAP data is one of the strongest local ranking factors.",
        "Low",
    ),
    "Knowledge Graph": (
        Impact.HIGH,
        "Knowledge Panel detection requires SERP analysis.",
        "Without a Knowledge Panel you have little control over branded results.",
        "Build entity signals through Wikidata, consistent schema and authoritative mentions.",
        "A Knowledge Panel establishes brand authority.",
        "High",
    ),
    "Entity Associations": (
        Impact.HIGH,
        "Entity association analysis requires language processing.",
        "Weak associations leave search engines unsure what your brand relates to.",
        "Add same-as links and earn mentions on authoritative sites.",
        "Stronger entity signals improve visibility.",
        "High",
    ),
    "Brand SERP Control": (
        Impact.HIGH,
        "Requires branded SERP analysis.",
        "You should own most of page one for your own brand name.",
        "Optimize owned properties to dominate branded search results.",
        "Controlling your brand SERP protects reputation.",
        "Medium",
    ),
    "Wikidata": (
        Impact.MEDIUM,
        "Wikidata lookup is not available.",
        "Wikidata is a primary source for Google's Knowledge Graph.",
        "Create a Wikidata entry with accurate business information.",
        "Can make the brand eligible for a Knowledge Panel.",
        "Medium",
    ),
    "Entity Descriptions": (
        Impact.MEDIUM,
        "Requires cross-platform analysis.",
        "Different descriptions across platforms confuse search engines.",
        "Standardize your business description everywhere it appears.",
        "Consistent messaging sharpens entity clarity.",
        "Low",
    ),
}


def _estimated(label: str) -> Metric:
    impact, detail, why, fix, expected_impact, difficulty = _ESTIMATED[label]
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


def build_local_entity(
    listing_result: BusinessListingResult | None,
    scan: WebsiteScanResult | None,
) -> MetricGroup:
    metrics = [
        _estimated("NAP Consistency"),
        _business_profile(listing_result),
        _reviews(listing_result),
        _schema_markup(scan),
        _estimated("Knowledge Graph"),
        _estimated("Entity Associations"),
        _estimated("Brand SERP Control"),
        _estimated("Wikidata"),
        _same_as(scan),
        _estimated("Entity Descriptions"),
    ]
    return MetricGroup.from_metrics(metrics)


def build_business_listing(listing_result: BusinessListingResult | None) -> BusinessListing | None:
    """The listing record shown on the report, or None when nothing was found."""
    if listing_result is None or not listing_result.has_real_content:
        return None
    return listing_result.listing.model_copy(deep=True)


def _business_profile(listing_result: BusinessListingResult | None) -> Metric:
    reading = read(listing_result.found if listing_result else None)
    listing = listing_result.listing if listing_result else None
    found = isinstance(reading, Measured) and reading.value

    findings = []
    if found and listing:
        findings.append(f'Business listed as: "{listing.name}"')
        if listing.types:
            findings.append(f"Categories: {', '.join(listing.types[:3])}")
        findings.append(f"Status: {listing.business_status}")

    if isinstance(reading, Unavailable):
        value, detail = "Checking...", "The business listing lookup did not complete."
    elif found:
        value, detail = "Yes", "Google Business Profile found and operational."
    else:
        value, detail = "Not Found", "No Google Business Profile found."

    return Metric(
        label="Verified Google Business Profile",
        value=value,
        status=flag_status(reading),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        findings=findings,
        why="Without a profile you are missing from the local map pack buyers see first.",
        fix="No action needed." if found else "Claim and verify your Google Business Profile.",
        expected_impact="Keeps you eligible for the local map pack.",
        difficulty="N/A" if found else "Low",
    )


def _reviews(listing_result: BusinessListingResult | None) -> Metric:
    listing = listing_result.listing if listing_result else None
    if listing_result is None:
        reading = read(None)
    else:
        # A lookup that found nothing is a real zero
        reading = read(listing.review_count if listing else 0)

    findings = []
    if listing and listing.review_count > 0 and listing.rating > 0:
        findings.append(f"{listing.rating} star average across {listing.review_count} reviews")
        if listing.rating < 4.0:
            findings.append("Below a 4.0 average, which can hurt click-through from local results")
        if listing.review_count < 20:
            findings.append("Under 20 reviews; competitors with more will outrank you locally")

    if isinstance(reading, Unavailable):
        value, detail = "Checking...", "Review data is not available yet."
    elif reading.value > 0:
        value = f"{listing.rating}★ ({reading.value} reviews)"
        detail = f"{listing.rating}-star average with {reading.value} total reviews."
    else:
        value, detail = "No reviews found", "No Google reviews detected."
    strong = isinstance(reading, Measured) and reading.value >= 50

    return Metric(
        label="Google Reviews",
        value=value,
        status=status_for(reading, 50, 10),
        impact=Impact.FOUNDATIONAL,
        estimated=isinstance(reading, Unavailable),
        detail=detail,
        findings=findings,
        why="Reviews are social proof at the moment of decision.",
        fix=(
            "Keep encouraging reviews."
            if strong
            else "Start a review generation routine targeting 5+ new reviews a month."
        ),
        expected_impact="Steady review growth sustains local ranking strength.",
        difficulty="N/A" if strong else "Medium",
    )


def _schema_markup(scan: WebsiteScanResult | None) -> Metric:
    schema = scan.schema_markup if scan else None
    if schema is None:
        return Metric(
            label="Schema Markup",
            value="Checking...",
            status=Status.WARNING,
            impact=Impact.HIGH,
            estimated=True,
            detail="Structured data could not be checked.",
            why="Without schema, search engines have an incomplete picture of your business.",
            fix="Add LocalBusiness, Service, FAQ and Review schema.",
            expected_impact="Comprehensive schema enables rich results.",
            difficulty="Medium",
        )

    findings = []
    if schema.types:
        findings.append(f"Found: {', '.join(schema.types)}")
    if not schema.has_local_business:
        findings.append("Missing LocalBusiness schema, which local search relies on")
    if not schema.has_faq:
        findings.append("Missing FAQ schema, an easy rich-result opportunity")

    if schema.has_local_business:
        status = Status.GOOD
    elif schema.has_organization:
        status = Status.WARNING
    else:
        status = Status.POOR
    count = len(schema.types)

    return Metric(
        label="Schema Markup",
        value=f"{count} type{'s' if count > 1 else ''}" if count else "None detected",
        status=status,
        impact=Impact.HIGH,
        detail=f"Types: {', '.join(schema.types)}" if count else "No structured data detected.",
        findings=findings,
        why="Without schema, search engines have an incomplete picture of your business.",
        fix=(
            "Consider adding Service and FAQ schema."
            if schema.has_local_business
            else "Add LocalBusiness, Service, FAQ and Review schema."
        ),
        expected_impact="Comprehensive schema enables rich results.",
        difficulty="Medium",
    )


def _same_as(scan: WebsiteScanResult | None) -> Metric:
    schema = scan.schema_markup if scan else None
    if schema is None:
        value, status = "Checking...", Status.WARNING
    elif schema.has_same_as:
        value, status = "Present", Status.GOOD
    elif schema.has_organization:
        value, status = "Partial", Status.WARNING
    else:
        value, status = "Not detected", Status.POOR

    return Metric(
        label="Same-As Links",
        value=value,
        status=status,
        impact=Impact.MEDIUM,
        estimated=schema is None,
        detail="Cross-platform identity links in schema markup.",
        why="Same-as links tie your website to your social profiles.",
        fix=(
            "No action needed."
            if status == Status.GOOD
            else "Add sameAs properties linking every verified social profile."
        ),
        expected_impact="Strengthens entity verification.",
        difficulty="N/A" if status == Status.GOOD else "Low",
    )
