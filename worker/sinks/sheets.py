"""Best-effort audit log: one spreadsheet row per created audit."""

import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from urllib.parse import quote

import httpx
import jwt
import structlog

from api.config import Settings
from api.models.audit import AuditDocument
from worker.scoring.models import MetricGroup

logger = structlog.get_logger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPE = "https://www.googleapis.com/auth/spreadsheets"

HEADERS = [
    "Timestamp",
    "Audit ID",
    "Audit Link",
    "Company Name",
    "Website URL",
    "Contact Name",
    "Email",
    "Phone",
    "Website Performance Score",
    "Search Visibility Score",
    "Content Performance Score",
    "Social & AI Score",
    "Local & Entity Score",
    "Overall Score",
    "Organic Keywords",
    "Domain Authority",
    "Backlinks",
    "Performance",
    "Mobile Optimization",
    "Google Reviews",
    "Pending Providers",
]

SCORED_GROUPS = ("site_performance", "search_visibility", "content", "social", "local_entity")


def _metric_value(group: MetricGroup | None, label: str) -> str:
    metric = group.find(label) if group else None
    return metric.value if metric else ""


def build_row(doc: AuditDocument, public_base_url: str = "") -> list[str | int]:
    """Flatten an audit into one row matching ``HEADERS``."""
    scores = [getattr(doc, field).score if getattr(doc, field) else "" for field in SCORED_GROUPS]
    present = [s for s in scores if isinstance(s, int)]
    overall = round(sum(present) / len(present)) if present else ""
    link = f"{public_base_url.rstrip('/')}/results/{doc.id}" if public_base_url else ""

    return [
        doc.meta.created_at.isoformat(),
        doc.id,
        link,
        doc.meta.company_name,
        doc.meta.url,
        doc.meta.contact_name,
        doc.meta.email,
        doc.meta.phone,
        *scores,
        overall,
        _metric_value(doc.search_visibility, "Organic Keywords"),
        _metric_value(doc.search_visibility, "Domain Authority Score"),
        _metric_value(doc.search_visibility, "Backlink Profile"),
        _metric_value(doc.site_performance, "GTmetrix Performance"),
        _metric_value(doc.site_performance, "Mobile Optimization"),
        _metric_value(doc.local_entity, "Google Reviews"),
        ", ".join(doc.pending_providers),
    ]


class AuditLogger(ABC):
    """Side channel notified after an audit is stored."""

    @abstractmethod
    async def log_audit(self, doc: AuditDocument) -> bool:
        """Record ``doc``. Never raises; returns whether it was recorded."""


class NullAuditLogger(AuditLogger):
    async def log_audit(self, doc: AuditDocument) -> bool:
        return False


class SheetsAuditLogger(AuditLogger):
    """Appends rows to a Google Sheet using a service-account token.

    The tab check runs once per logger instance; later appends skip it.
    """

    def __init__(
        self,
        service_account_email: str,
        private_key: str,
        spreadsheet_id: str,
        tab_name: str = "Inbound Digital Audit",
        public_base_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.service_account_email = service_account_email
        # Keys pasted into env vars usually carry escaped newlines
        self.private_key = private_key.replace("\\n", "\n")
        self.spreadsheet_id = spreadsheet_id
        self.tab_name = tab_name
        self.public_base_url = public_base_url
        self.timeout = timeout
        self._transport = transport
        self._tab_verified = False

    async def log_audit(self, doc: AuditDocument) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                token = await self._access_token(client)
                await self._ensure_tab(client, token)
                await self._append(client, token, build_row(doc, self.public_base_url))
        except (httpx.HTTPError, jwt.PyJWTError, ValueError, KeyError) as e:
            logger.warning("audit_log_failed", audit_id=doc.id, error=str(e))
            return False
        logger.info("audit_logged", audit_id=doc.id, tab=self.tab_name)
        return True

    def _assertion(self) -> str:
        now = int(time.time())
        claims = {
            "iss": self.service_account_email,
            "scope": SCOPE,
            "aud": TOKEN_URL,
            "iat": now,
            "exp": now + 3600,
        }
        return jwt.encode(claims, self.private_key, algorithm="RS256")

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            TOKEN_URL,
            data={
                "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                "assertion": self._assertion(),
            },
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _ensure_tab(self, client: httpx.AsyncClient, token: str) -> None:
        if self._tab_verified:
            return
        headers = {"Authorization": f"Bearer {token}"}
        response = await client.get(
            f"{SHEETS_API_URL}/{self.spreadsheet_id}",
            params={"fields": "sheets.properties.title"},
            headers=headers,
        )
        response.raise_for_status()
        titles = [
            sheet.get("properties", {}).get("title")
            for sheet in response.json().get("sheets", [])
        ]
        if self.tab_name not in titles:
            created = await client.post(
                f"{SHEETS_API_URL}/{self.spreadsheet_id}:batchUpdate",
                json={"requests": [{"addSheet": {"properties": {"title": self.tab_name}}}]},
                headers=headers,
            )
            created.raise_for_status()
            await self._append(client, token, HEADERS)
            logger.info("audit_log_tab_created", tab=self.tab_name)
        self._tab_verified = True

    async def _append(self, client: httpx.AsyncClient, token: str, row: list) -> None:
        cell_range = quote(f"{self.tab_name}!A:U", safe="")
        response = await client.post(
            f"{SHEETS_API_URL}/{self.spreadsheet_id}/values/{cell_range}:append",
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"values": [row]},
            headers={"Authorization": f"Bearer {token}"},
        )
        response.raise_for_status()


def build_audit_logger(settings: Settings) -> AuditLogger:
    if not settings.sheets_enabled:
        logger.info("audit_log_disabled")
        return NullAuditLogger()
    return SheetsAuditLogger(
        service_account_email=settings.google_service_account_email,
        private_key=settings.google_service_account_key,
        spreadsheet_id=settings.sheets_spreadsheet_id,
        tab_name=settings.sheets_tab_name,
        public_base_url=settings.public_base_url,
    )
