"""SEMrush domain metrics: ranks, backlinks, top keywords and competitors."""

import asyncio
from typing import Any

import httpx
import structlog

from worker.providers.base import ProviderAdapter, ProviderConfig, bare_domain
from worker.providers.models import (
    AuditTarget,
    BacklinkOverview,
    Competitor,
    DomainRanks,
    KeywordRanking,
    ProviderError,
    ProviderName,
    SearchMetricsResult,
)

logger = structlog.get_logger(__name__)

SEMRUSH_BASE_URL = "https://api.semrush.com"


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse SEMrush's semicolon-separated export into row dicts."""
    lines = [line for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 2:
        return []
    headers = [h.strip() for h in lines[0].split(";")]
    rows = []
    for line in lines[1:]:
        values = [v.strip() for v in line.split(";")]
        rows.append(dict(zip(headers, values, strict=False)))
    return rows


def _int(value: str | None) -> int:
    try:
        return int(float(value or 0))
    except (ValueError, OverflowError):
        return 0


def _float(value: str | None) -> float:
    try:
        return float(value or 0)
    except (ValueError, OverflowError):
        return 0.0


class SearchMetricsAdapter(ProviderAdapter):
    """Four SEMrush reports fetched concurrently.

    A sub-report that fails degrades to ``None``/``[]``; whether the combined
    result is usable is left to ``SearchMetricsResult.has_real_content``.
    """

    name = ProviderName.SEARCH_METRICS
    default_base_url = SEMRUSH_BASE_URL

    def __init__(self, config: ProviderConfig, database: str = "us", **kwargs):
        super().__init__(config, **kwargs)
        self.database = database

    async def _fetch(self, target: AuditTarget) -> SearchMetricsResult:
        api_key = self._require_api_key("SEMRUSH_API_KEY")
        domain = bare_domain(target.url)

        async with self._client() as client:
            results = await asyncio.gather(
                self._report(
                    client, api_key, "domain_ranks", domain, export_columns="Dn,Rk,Or,Ot,Oc"
                ),
                self._backlinks(client, api_key, domain),
                self._report(
                    client,
                    api_key,
                    "domain_organic",
                    domain,
                    export_columns="Ph,Po,Nq,Tr,Kd",
                    display_limit=10,
                    display_sort="tr_desc",
                ),
                self._report(
                    client,
                    api_key,
                    "domain_organic_organic",
                    domain,
                    export_columns="Dn,Np,Or,Ot",
                    display_limit=5,
                    display_sort="np_desc",
                ),
                return_exceptions=True,
            )

        failures = [r for r in results if isinstance(r, BaseException)]
        if len(failures) == len(results):
            raise failures[0]

        ranks_rows, backlink_rows, keyword_rows, competitor_rows = [
            self._rows_or_empty(section, result)
            for section, result in zip(
                ("domain_ranks", "backlinks_overview", "top_keywords", "competitors"),
                results,
                strict=True,
            )
        ]

        return SearchMetricsResult(
            domain=domain,
            domain_ranks=_domain_ranks(ranks_rows),
            backlinks=_backlinks(backlink_rows),
            top_keywords=[
                KeywordRanking(
                    keyword=row.get("Ph", ""),
                    position=_int(row.get("Po")),
                    volume=_int(row.get("Nq")),
                    traffic=_int(row.get("Tr")),
                    difficulty=_int(row.get("Kd")),
                )
                for row in keyword_rows
                if row.get("Ph")
            ],
            competitors=[
                Competitor(
                    domain=row.get("Dn", ""),
                    common_keywords=_int(row.get("Np")),
                    organic_keywords=_int(row.get("Or")),
                    organic_traffic=_int(row.get("Ot")),
                )
                for row in competitor_rows
                if row.get("Dn")
            ],
        )

    def _rows_or_empty(self, section: str, result: Any) -> list[dict[str, str]]:
        if isinstance(result, BaseException):
            logger.warning("search_metrics_section_failed", section=section, error=str(result))
            return []
        return result

    async def _report(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        report_type: str,
        domain: str,
        **params: Any,
    ) -> list[dict[str, str]]:
        response = await client.get(
            f"{self._base_url}/",
            params={
                "type": report_type,
                "key": api_key,
                "domain": domain,
                "database": self.database,
                **params,
            },
        )
        response.raise_for_status()
        return self._parse(report_type, response.text)

    async def _backlinks(
        self, client: httpx.AsyncClient, api_key: str, domain: str
    ) -> list[dict[str, str]]:
        response = await client.get(
            f"{self._base_url}/analytics/v1/",
            params={
                "type": "backlinks_overview",
                "key": api_key,
                "target": domain,
                "target_type": "root_domain",
                "export_columns": "total,domains_num,follows_num,nofollows_num",
            },
        )
        response.raise_for_status()
        return self._parse("backlinks_overview", response.text)

    def _parse(self, report_type: str, text: str) -> list[dict[str, str]]:
        # "ERROR 50 :: NOTHING FOUND" means no data for this domain
        if text.startswith("ERROR 50"):
            return []
        if text.startswith("ERROR"):
            raise ProviderError(self.name, f"{report_type}: {text.strip()}")
        return parse_csv(text)


def _domain_ranks(rows: list[dict[str, str]]) -> DomainRanks | None:
    if not rows:
        return None
    row = rows[0]
    return DomainRanks(
        rank=_int(row.get("Rk")),
        organic_keywords=_int(row.get("Or")),
        organic_traffic=_int(row.get("Ot")),
        organic_cost=_float(row.get("Oc")),
    )


def _backlinks(rows: list[dict[str, str]]) -> BacklinkOverview | None:
    if not rows:
        return None
    row = rows[0]
    return BacklinkOverview(
        total=_int(row.get("total")),
        referring_domains=_int(row.get("domains_num")),
        follow_links=_int(row.get("follows_num")),
        nofollow_links=_int(row.get("nofollows_num")),
    )
