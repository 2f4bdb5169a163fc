"""GTmetrix speed analysis: start a test, poll until it completes, read the report."""

import asyncio
from typing import Any

import structlog

from worker.providers.base import ProviderAdapter, ProviderConfig
from worker.providers.models import (
    AuditTarget,
    CoreWebVitals,
    ProviderError,
    ProviderName,
    ResourceInfo,
    SpeedAnalysisResult,
)

logger = structlog.get_logger(__name__)

GTMETRIX_BASE_URL = "https://gtmetrix.com/api/2.0"
JSONAPI_CONTENT_TYPE = "application/vnd.api+json"


class SpeedAnalysisAdapter(ProviderAdapter):
    """GTmetrix API v2.0 client.

    The whole start/poll/report sequence runs inside the adapter deadline
    enforced by ``ProviderAdapter.fetch``; polling itself is unbounded.
    """

    name = ProviderName.SPEED_ANALYSIS
    default_base_url = GTMETRIX_BASE_URL

    def __init__(self, config: ProviderConfig, poll_interval_seconds: float = 3.0, **kwargs):
        super().__init__(config, **kwargs)
        self.poll_interval_seconds = poll_interval_seconds

    async def _fetch(self, target: AuditTarget) -> SpeedAnalysisResult:
        api_key = self._require_api_key("GTMETRIX_API_KEY")
        base = self._base_url

        async with self._client(auth=(api_key, "")) as client:
            start = await client.post(
                f"{base}/tests",
                headers={"Content-Type": JSONAPI_CONTENT_TYPE},
                json={
                    "data": {
                        "type": "test",
                        "attributes": {"url": target.url, "report": "lighthouse"},
                    }
                },
            )
            start.raise_for_status()
            payload = start.json()
            _raise_for_api_errors(self.name, payload)

            test_id = (payload.get("data") or {}).get("id")
            if not test_id:
                raise ProviderError(self.name, "No test id in start response")

            while True:
                await asyncio.sleep(self.poll_interval_seconds)
                poll = await client.get(f"{base}/tests/{test_id}")
                poll.raise_for_status()
                data = poll.json().get("data") or {}
                attrs = data.get("attributes") or {}
                state = attrs.get("state")
                logger.debug("speed_analysis_poll", test_id=test_id, state=state)

                if state == "completed":
                    break
                if state == "error":
                    raise ProviderError(
                        self.name, f"Test error: {attrs.get('error') or 'unknown'}"
                    )

            report_id = attrs.get("report")
            if not report_id:
                raise ProviderError(self.name, "No report id in completed test")

            report = await client.get(f"{base}/reports/{report_id}")
            report.raise_for_status()
            report_attrs = (report.json().get("data") or {}).get("attributes") or {}

        return map_report(report_attrs)


def _raise_for_api_errors(provider: str, payload: dict[str, Any]) -> None:
    # JSON:API may answer 200 with an errors array
    errors = payload.get("errors")
    if errors:
        message = "; ".join(
            str(e.get("title") or e.get("detail") or e.get("code")) for e in errors
        )
        raise ProviderError(provider, f"API error: {message}")


def _format_ms(value: float | None) -> str | None:
    if value is None:
        return None
    return f"{value / 1000:.1f}s" if value >= 1000 else f"{round(value)}ms"


def map_report(attrs: dict[str, Any]) -> SpeedAnalysisResult:
    """Map GTmetrix report attributes onto ``SpeedAnalysisResult``.

    GTmetrix does not split desktop and mobile, so the single performance
    score is the desktop score.
    """
    performance = attrs.get("performance_score")
    structure = attrs.get("structure_score")
    blocking = [
        ResourceInfo(url=str(url), resource_type="script")
        for url in (attrs.get("render_blocking_resources") or [])[:5]
    ]
    return SpeedAnalysisResult(
        performance_score=round(performance) if performance is not None else None,
        desktop_score=round(performance) if performance is not None else None,
        structure_score=round(structure) if structure is not None else None,
        grade=attrs.get("gtmetrix_grade"),
        core_web_vitals=CoreWebVitals(
            lcp_ms=attrs.get("largest_contentful_paint"),
            tbt_ms=attrs.get("total_blocking_time"),
            cls=attrs.get("cumulative_layout_shift"),
            fcp_ms=attrs.get("first_contentful_paint"),
        ),
        fully_loaded_ms=attrs.get("fully_loaded_time"),
        page_bytes=attrs.get("page_bytes"),
        blocking_resources=blocking,
    )


def format_vitals(vitals: CoreWebVitals) -> dict[str, str | None]:
    """Human-readable vitals for report findings."""
    return {
        "lcp": _format_ms(vitals.lcp_ms),
        "fcp": _format_ms(vitals.fcp_ms),
        "tbt": _format_ms(vitals.tbt_ms),
    }
