"""Lightweight existence checks for crawl-control files."""

import httpx
import structlog

logger = structlog.get_logger(__name__)


async def check_exists(
    url: str,
    timeout: float = 3.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool | None:
    """HEAD ``url`` following redirects.

    Returns True on a 2xx, False on any other response, and None when the
    host could not be asked at all (unknown, not absent).
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, transport=transport
        ) as client:
            response = await client.head(url)
    except httpx.HTTPError as e:
        logger.debug("existence_check_failed", url=url, error=str(e))
        return None
    return response.is_success


def sitemap_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/sitemap.xml"


def robots_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/robots.txt"
