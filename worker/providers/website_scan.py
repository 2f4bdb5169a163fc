"""Homepage scan: fetch the target's HTML and parse on-page SEO signals."""

import json
import re
from datetime import UTC, datetime
from urllib.parse import urlparse

import httpx
import structlog
from bs4 import BeautifulSoup

from worker.providers.base import ProviderAdapter, bare_domain
from worker.providers.models import (
    AuditTarget,
    BlogInfo,
    ContentStats,
    ImageStats,
    OpenGraphTags,
    PageMeta,
    ProviderError,
    ProviderName,
    SchemaStats,
    TwitterCardTags,
    WebsiteScanResult,
)

logger = structlog.get_logger(__name__)

RECOMMENDED_SCHEMA_TYPES = ("Organization", "LocalBusiness", "FAQPage", "WebSite")
BLOG_PATH_HINTS = ("/blog", "/news", "/articles", "/insights", "/resources")
SHARE_URL_HINTS = (
    "facebook.com/sharer",
    "twitter.com/intent",
    "x.com/intent",
    "linkedin.com/sharearticle",
    "addthis.com",
    "sharethis.com",
)
MAX_EXAMPLES = 5


class WebsiteScanAdapter(ProviderAdapter):
    """Fetch the homepage (HTTPS first, then HTTP) and parse it."""

    name = ProviderName.WEBSITE_SCAN

    async def _fetch(self, target: AuditTarget) -> WebsiteScanResult:
        url = target.url
        async with self._client(follow_redirects=True) as client:
            try:
                response = await client.get(url)
                ssl_valid = url.startswith("https://") and response.status_code < 400
            except httpx.TransportError as e:
                if not url.startswith("https://"):
                    raise ProviderError(self.name, f"Could not reach {url}: {e}") from e
                fallback = "http://" + url.removeprefix("https://")
                logger.info("website_scan_http_fallback", url=url, error=str(e))
                try:
                    response = await client.get(fallback)
                except httpx.TransportError as e2:
                    raise ProviderError(self.name, f"Could not reach {url}: {e2}") from e2
                ssl_valid = False

        return parse_homepage(
            response.text,
            final_url=str(response.url),
            status_code=response.status_code,
            ssl_valid=ssl_valid,
            alt_svc=response.headers.get("alt-svc", ""),
        )


def parse_homepage(
    html: str,
    final_url: str,
    status_code: int = 200,
    ssl_valid: bool = False,
    alt_svc: str = "",
    now: datetime | None = None,
) -> WebsiteScanResult:
    """Parse homepage HTML into a ``WebsiteScanResult``."""
    soup = BeautifulSoup(html, "html.parser")
    domain = bare_domain(final_url)

    # alt-svc only advertises newer protocols; absence tells us nothing
    http2 = True if ("h2" in alt_svc or "h3" in alt_svc) else None

    return WebsiteScanResult(
        final_url=final_url,
        status_code=status_code,
        html_length=len(html),
        ssl_valid=ssl_valid,
        http2=http2,
        images=_image_stats(soup),
        meta=_page_meta(soup),
        schema_markup=_schema_stats(soup),
        open_graph=_open_graph(soup),
        twitter_cards=_twitter_cards(soup),
        content=_content_stats(soup, html, domain),
        blog=_blog_info(soup, now or datetime.now(UTC)),
    )


def _meta_content(soup: BeautifulSoup, key: str) -> str | None:
    """Content of a meta tag matched by ``property`` or ``name``."""
    for attr in ("property", "name"):
        tag = soup.find("meta", attrs={attr: re.compile(f"^{re.escape(key)}$", re.I)})
        if tag and tag.get("content"):
            return str(tag["content"]).strip()
    return None


def _image_stats(soup: BeautifulSoup) -> ImageStats:
    images = soup.find_all("img")
    missing = [img for img in images if not str(img.get("alt") or "").strip()]
    total = len(images)
    return ImageStats(
        total=total,
        missing_alt=len(missing),
        missing_alt_pct=round(len(missing) / total * 100) if total else 0,
        missing_alt_examples=[
            str(img.get("src")) for img in missing if img.get("src")
        ][:MAX_EXAMPLES],
    )


def _page_meta(soup: BeautifulSoup) -> PageMeta:
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else None
    description = _meta_content(soup, "description")
    h1s = soup.find_all("h1")
    robots = _meta_content(soup, "robots") or ""
    canonical = soup.find("link", rel="canonical")
    return PageMeta(
        title=title or None,
        title_length=len(title or ""),
        description=description or None,
        description_length=len(description or ""),
        has_h1=bool(h1s),
        multiple_h1=len(h1s) > 1,
        h1_text=h1s[0].get_text(" ", strip=True)[:200] if h1s else None,
        noindex="noindex" in robots.lower(),
        canonical=str(canonical["href"]) if canonical and canonical.get("href") else None,
        has_viewport=soup.find("meta", attrs={"name": "viewport"}) is not None,
    )


def _schema_stats(soup: BeautifulSoup) -> SchemaStats:
    types: list[str] = []
    has_same_as = False
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        items = data if isinstance(data, list) else [data]
        if isinstance(data, dict) and isinstance(data.get("@graph"), list):
            items = data["@graph"]
        for item in items:
            if not isinstance(item, dict):
                continue
            has_same_as = has_same_as or bool(item.get("sameAs"))
            item_type = item.get("@type")
            for t in item_type if isinstance(item_type, list) else [item_type]:
                if isinstance(t, str) and t not in types:
                    types.append(t)

    return SchemaStats(
        types=types,
        has_organization="Organization" in types,
        has_local_business="LocalBusiness" in types,
        has_faq="FAQPage" in types,
        has_same_as=has_same_as,
        missing_types=[t for t in RECOMMENDED_SCHEMA_TYPES if t not in types],
    )


def _open_graph(soup: BeautifulSoup) -> OpenGraphTags:
    values = {tag: _meta_content(soup, f"og:{tag}") for tag in ("title", "description", "image")}
    present = {tag: bool(value) for tag, value in values.items()}
    return OpenGraphTags(
        **present,
        complete=all(present.values()),
        actual_title=values["title"],
        missing_tags=[f"og:{tag}" for tag, ok in present.items() if not ok],
    )


def _twitter_cards(soup: BeautifulSoup) -> TwitterCardTags:
    present = {
        tag: bool(_meta_content(soup, f"twitter:{tag}")) for tag in ("card", "title", "image")
    }
    return TwitterCardTags(
        **present,
        complete=present["card"] and present["title"],
        missing_tags=[f"twitter:{tag}" for tag, ok in present.items() if not ok],
    )


def _is_internal(href: str, domain: str) -> bool:
    if href.startswith("/") and not href.startswith("//"):
        return True
    host = (urlparse(href).hostname or "").lower()
    return bool(host) and (host.removeprefix("www.") == domain or host.endswith("." + domain))


def _content_stats(soup: BeautifulSoup, html: str, domain: str) -> ContentStats:
    hrefs = [str(a.get("href") or "").strip() for a in soup.find_all("a")]
    empty = [h for h in hrefs if h in ("", "#") or h.lower().startswith("javascript:")]

    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = " ".join(soup.get_text(" ").split())

    return ContentStats(
        ratio=round(len(text) / len(html) * 100) if html else 0,
        word_count=len([w for w in text.split(" ") if len(w) > 1]),
        internal_links=sum(1 for h in hrefs if _is_internal(h, domain)),
        total_links=len(hrefs),
        empty_links=len(empty),
        share_buttons=any(hint in h.lower() for h in hrefs for hint in SHARE_URL_HINTS),
    )


def _blog_info(soup: BeautifulSoup, now: datetime) -> BlogInfo:
    path = None
    for a in soup.find_all("a", href=True):
        href_path = urlparse(str(a["href"])).path.lower()
        if any(href_path.startswith(hint) for hint in BLOG_PATH_HINTS):
            path = urlparse(str(a["href"])).path
            break

    dates: list[datetime] = []
    for time_tag in soup.find_all("time", datetime=True):
        parsed = _parse_date(str(time_tag["datetime"]))
        if parsed is not None and parsed <= now:
            dates.append(parsed)
    published = _meta_content(soup, "article:published_time")
    if published and (parsed := _parse_date(published)) is not None and parsed <= now:
        dates.append(parsed)

    titles = [
        h.get_text(" ", strip=True)[:120]
        for h in soup.select("article h2, article h3")
        if h.get_text(strip=True)
    ][:3]

    latest = max(dates) if dates else None
    return BlogInfo(
        detected=path is not None,
        path=path,
        last_post_date=latest.date().isoformat() if latest else None,
        last_post_days_ago=(now - latest).days if latest else None,
        recent_titles=titles,
    )


def _parse_date(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
