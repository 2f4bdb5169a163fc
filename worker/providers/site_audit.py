"""SEMrush Projects site audit: the optional deep technical scan."""

from worker.providers.base import ProviderAdapter
from worker.providers.models import SITE_AUDIT, AuditTarget, ProviderError, SiteAuditResult

SEMRUSH_PROJECTS_URL = "https://api.semrush.com/reports/v1/projects"


class SiteAuditAdapter(ProviderAdapter):
    """Reads the latest finished snapshot of a SEMrush site audit project.

    Needs the project id from ``AuditTarget.deep_scan_id``; the orchestrator
    only calls it when one was supplied.
    """

    name = SITE_AUDIT
    default_base_url = SEMRUSH_PROJECTS_URL

    async def _fetch(self, target: AuditTarget) -> SiteAuditResult:
        api_key = self._require_api_key("SEMRUSH_API_KEY")
        if not target.deep_scan_id:
            raise ProviderError(self.name, "No project id supplied")
        base = f"{self._base_url}/{target.deep_scan_id}/siteaudit"

        async with self._client() as client:
            snapshots_response = await client.get(f"{base}/snapshots", params={"key": api_key})
            snapshots_response.raise_for_status()
            snapshots = snapshots_response.json().get("snapshots") or []
            if not snapshots:
                return SiteAuditResult()

            latest = max(snapshots, key=lambda s: s.get("finish_date") or 0)
            detail_response = await client.get(
                f"{base}/snapshot",
                params={"key": api_key, "snapshot_id": latest["snapshot_id"]},
            )
            detail_response.raise_for_status()
            detail = detail_response.json()

        quality = detail.get("quality")
        return SiteAuditResult(
            score=quality.get("value") if isinstance(quality, dict) else quality,
            errors=_issue_total(detail.get("errors")),
            warnings=_issue_total(detail.get("warnings")),
            notices=_issue_total(detail.get("notices")),
            pages_crawled=detail.get("pages_crawled") or 0,
        )


def _issue_total(issues: list[dict] | None) -> int:
    return sum(issue.get("count") or 0 for issue in issues or [])
