"""Tests for the spreadsheet audit log."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from api.config import Settings
from worker.sinks.sheets import (
    HEADERS,
    TOKEN_URL,
    NullAuditLogger,
    SheetsAuditLogger,
    build_audit_logger,
    build_row,
)


@pytest.fixture
async def audit_doc(orchestrator):
    return await orchestrator.create(
        "https://acme-plumbing.com",
        company_name="Acme Plumbing",
        contact_name="Dana",
        email="dana@acme-plumbing.com",
        phone="555-0100",
    )


class SheetsApi:
    """Records Sheets API calls; ``tabs`` are the sheet titles already present."""

    def __init__(self, tabs: list[str] | None = None, fail_append: bool = False):
        self.tabs = tabs or []
        self.fail_append = fail_append
        self.appended: list[list] = []
        self.batch_updates = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "GET":
            return httpx.Response(
                200, json={"sheets": [{"properties": {"title": t}} for t in self.tabs]}
            )
        if path.endswith(":batchUpdate"):
            self.batch_updates += 1
            add_sheet = json.loads(request.content)["requests"][0]["addSheet"]
            self.tabs.append(add_sheet["properties"]["title"])
            return httpx.Response(200, json={})
        if path.endswith(":append"):
            if self.fail_append:
                return httpx.Response(403, json={"error": "forbidden"})
            self.appended.extend(json.loads(request.content)["values"])
            return httpx.Response(200, json={})
        return httpx.Response(404)

    def logger(self, **kwargs) -> SheetsAuditLogger:
        return SheetsAuditLogger(
            service_account_email="audit@project.iam.gserviceaccount.com",
            private_key="unused",
            spreadsheet_id="sheet123",
            tab_name="Inbound Digital Audit",
            public_base_url="https://audits.example.com/",
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )


class TestBuildRow:
    """Tests for row flattening."""

    @pytest.mark.asyncio
    async def test_row_matches_headers(self, audit_doc):
        row = build_row(audit_doc, "https://audits.example.com/")
        assert len(row) == len(HEADERS)

        values = dict(zip(HEADERS, row, strict=True))
        assert values["Audit ID"] == audit_doc.id
        assert values["Audit Link"] == f"https://audits.example.com/results/{audit_doc.id}"
        assert values["Company Name"] == "Acme Plumbing"
        assert values["Email"] == "dana@acme-plumbing.com"
        assert values["Website Performance Score"] == audit_doc.site_performance.score
        assert values["Organic Keywords"] == "640"
        assert values["Domain Authority"] == "24/100"
        assert values["Performance"] == "82%"
        assert values["Pending Providers"] == ""

        scores = [
            audit_doc.site_performance.score,
            audit_doc.search_visibility.score,
            audit_doc.content.score,
            audit_doc.social.score,
            audit_doc.local_entity.score,
        ]
        assert values["Overall Score"] == round(sum(scores) / 5)

    @pytest.mark.asyncio
    async def test_pending_providers_listed(self, orchestrator, fake_adapters):
        fake_adapters["speed_analysis"].error = "down"
        fake_adapters["business_listing"].error = "down"
        doc = await orchestrator.create("https://acme-plumbing.com")

        row = build_row(doc)

        assert row[-1] == "speed_analysis, business_listing"
        assert row[2] == ""


class TestSheetsAuditLogger:
    """Tests for SheetsAuditLogger.log_audit."""

    @pytest.mark.asyncio
    async def test_creates_tab_once_with_headers(self, audit_doc):
        api = SheetsApi()
        audit_logger = api.logger()

        with patch.object(audit_logger, "_access_token", AsyncMock(return_value="token")):
            assert await audit_logger.log_audit(audit_doc)
            assert await audit_logger.log_audit(audit_doc)

        assert api.batch_updates == 1
        assert api.appended[0] == HEADERS
        assert len(api.appended) == 3
        assert api.appended[1][1] == audit_doc.id

    @pytest.mark.asyncio
    async def test_existing_tab_not_recreated(self, audit_doc):
        api = SheetsApi(tabs=["Inbound Digital Audit"])
        audit_logger = api.logger()

        with patch.object(audit_logger, "_access_token", AsyncMock(return_value="token")):
            assert await audit_logger.log_audit(audit_doc)

        assert api.batch_updates == 0
        assert len(api.appended) == 1

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, audit_doc):
        api = SheetsApi(tabs=["Inbound Digital Audit"], fail_append=True)
        audit_logger = api.logger()

        with patch.object(audit_logger, "_access_token", AsyncMock(return_value="token")):
            assert await audit_logger.log_audit(audit_doc) is False

    @pytest.mark.asyncio
    async def test_bad_private_key_is_swallowed(self, audit_doc):
        assert await SheetsApi().logger().log_audit(audit_doc) is False

    @pytest.mark.asyncio
    async def test_service_account_assertion(self):
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        pem = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode()
        escaped = pem.replace("\n", "\\n")

        audit_logger = SheetsAuditLogger("svc@example.com", escaped, "sheet123")
        claims = jwt.decode(
            audit_logger._assertion(),
            key.public_key(),
            algorithms=["RS256"],
            audience=TOKEN_URL,
        )

        assert claims["iss"] == "svc@example.com"
        assert claims["exp"] - claims["iat"] == 3600


class TestBuildAuditLogger:
    """Tests for logger selection."""

    def test_disabled_without_credentials(self):
        assert isinstance(build_audit_logger(Settings()), NullAuditLogger)

    def test_enabled_with_credentials(self):
        settings = Settings(
            google_service_account_email="svc@example.com",
            google_service_account_key="key",
            sheets_spreadsheet_id="sheet123",
        )
        assert isinstance(build_audit_logger(settings), SheetsAuditLogger)

    @pytest.mark.asyncio
    async def test_null_logger(self, audit_doc):
        assert await NullAuditLogger().log_audit(audit_doc) is False
