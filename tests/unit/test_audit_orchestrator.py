"""Tests for audit creation and outcome bookkeeping."""

import pytest

from api.exceptions import BadRequestError
from api.models.audit import AuditDocument, AuditMeta
from tests.fixtures.providers import (
    FakeAdapter,
    provider_set,
    search_metrics_result,
    speed_analysis_result,
    unreachable_transport,
)
from worker.providers.models import SITE_AUDIT, ProviderName, SpeedAnalysisResult
from worker.scoring.models import Status
from worker.tasks.audit import (
    AUDIT_ID_ALPHABET,
    AUDIT_ID_LENGTH,
    GROUP_ORDER,
    AuditOrchestrator,
    affected_groups,
    apply_outcome,
    generate_audit_id,
    normalize_url,
    rebuild_groups,
)
from worker.tasks.fanout import OutcomeKind, ProviderFailure, ProviderSuccess


def make_doc() -> AuditDocument:
    return AuditDocument(id="abcde12345", meta=AuditMeta(url="https://acme-plumbing.com"))


class TestNormalizeUrl:
    """Tests for URL normalization."""

    def test_adds_scheme(self):
        assert normalize_url("acme-plumbing.com") == "https://acme-plumbing.com"

    def test_keeps_scheme(self):
        assert normalize_url("http://acme-plumbing.com") == "http://acme-plumbing.com"

    def test_strips_whitespace(self):
        assert normalize_url("  https://acme.com  ") == "https://acme.com"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing(self, raw):
        with pytest.raises(BadRequestError) as exc_info:
            normalize_url(raw)
        assert exc_info.value.details == {"field": "url"}

    def test_too_long(self):
        with pytest.raises(BadRequestError):
            normalize_url("https://acme.com/" + "a" * 3000)


class TestAuditId:
    """Tests for audit id generation."""

    def test_shape(self):
        audit_id = generate_audit_id()
        assert len(audit_id) == AUDIT_ID_LENGTH
        assert set(audit_id) <= set(AUDIT_ID_ALPHABET)

    def test_ids_differ(self):
        assert len({generate_audit_id() for _ in range(50)}) == 50


class TestApplyOutcome:
    """Tests for per-provider bookkeeping."""

    def test_failure_records_error_and_pending(self):
        doc = make_doc()
        kind = apply_outcome(
            doc, ProviderName.SPEED_ANALYSIS, ProviderFailure("speed_analysis", "HTTP 500")
        )
        assert kind is OutcomeKind.FAILED
        assert doc.provider_errors == {"speed_analysis": "HTTP 500"}
        assert doc.pending_providers == ["speed_analysis"]
        assert doc.sources.speed_analysis is None

    def test_empty_is_pending_without_error(self):
        doc = make_doc()
        kind = apply_outcome(
            doc,
            ProviderName.SPEED_ANALYSIS,
            ProviderSuccess("speed_analysis", SpeedAnalysisResult()),
        )
        assert kind is OutcomeKind.EMPTY
        assert doc.provider_errors == {}
        assert doc.pending_providers == ["speed_analysis"]
        assert doc.sources.speed_analysis is None

    def test_success_clears_error_and_pending(self):
        doc = make_doc()
        doc.pending_providers = ["speed_analysis"]
        doc.provider_errors = {"speed_analysis": "HTTP 500"}
        kind = apply_outcome(
            doc,
            ProviderName.SPEED_ANALYSIS,
            ProviderSuccess("speed_analysis", speed_analysis_result()),
        )
        assert kind is OutcomeKind.PRESENT
        assert doc.pending_providers == []
        assert doc.provider_errors == {}
        assert doc.sources.speed_analysis.performance_score == 82

    def test_pending_stays_in_canonical_order(self):
        doc = make_doc()
        for name in ("business_listing", "website_scan", "search_metrics"):
            apply_outcome(doc, name, ProviderFailure(name, "down"))
        assert doc.pending_providers == ["website_scan", "search_metrics", "business_listing"]

    def test_deep_scan_failure_is_never_pending(self):
        doc = make_doc()
        apply_outcome(doc, SITE_AUDIT, ProviderFailure(SITE_AUDIT, "HTTP 403"))
        assert doc.pending_providers == []
        assert doc.provider_errors == {SITE_AUDIT: "HTTP 403"}


class TestGroupRebuild:
    """Tests for the provider-to-group dependency map."""

    def test_affected_groups(self):
        assert affected_groups(["search_metrics"]) == {"search_visibility", "keywords"}
        assert affected_groups(["website_scan"]) == {
            "site_performance",
            "content",
            "social",
            "local_entity",
        }
        assert affected_groups([]) == set()

    def test_rebuild_uses_fixed_order(self):
        doc = make_doc()
        rebuilt = rebuild_groups(doc, {"keywords", "site_performance", "content"})
        assert rebuilt == ["site_performance", "content", "keywords"]

    def test_rebuild_reads_every_source(self):
        doc = make_doc()
        doc.sources.search_metrics = search_metrics_result()
        rebuild_groups(doc, ["search_visibility"])
        assert doc.search_visibility.find("Organic Keywords").value == "640"


class TestAuditOrchestrator:
    """Tests for AuditOrchestrator.create."""

    @pytest.mark.asyncio
    async def test_all_providers_healthy(self, orchestrator):
        doc = await orchestrator.create(
            "acme-plumbing.com",
            company_name=" Acme Plumbing ",
            email="owner@acme-plumbing.com",
        )

        assert doc.meta.url == "https://acme-plumbing.com"
        assert doc.meta.company_name == "Acme Plumbing"
        assert doc.version == 0
        assert doc.pending_providers == []
        assert doc.provider_errors == {}
        assert doc.retry_counts == {}
        assert doc.unavailable_providers == []
        assert doc.sources.has_sitemap is True
        assert doc.sources.has_robots is True
        for field in GROUP_ORDER:
            assert getattr(doc, field)
        assert doc.business_listing.review_count == 87
        assert [k.keyword for k in doc.keywords][0] == "emergency plumber"

    @pytest.mark.asyncio
    async def test_one_provider_failing(self, orchestrator, fake_adapters):
        fake_adapters[ProviderName.SPEED_ANALYSIS].error = "HTTP 500 from gtmetrix.com"

        doc = await orchestrator.create("https://acme-plumbing.com")

        assert doc.pending_providers == ["speed_analysis"]
        assert doc.provider_errors == {
            "speed_analysis": "speed_analysis: HTTP 500 from gtmetrix.com"
        }
        performance = doc.site_performance.find("GTmetrix Performance")
        assert performance.status == Status.WARNING
        assert performance.value == "Analyzing..."
        # Other providers' data still lands
        assert doc.search_visibility.find("Organic Keywords").status == Status.GOOD

    @pytest.mark.asyncio
    async def test_empty_result_goes_pending(self, orchestrator, fake_adapters):
        fake_adapters[ProviderName.SPEED_ANALYSIS].result = SpeedAnalysisResult()

        doc = await orchestrator.create("https://acme-plumbing.com")

        assert doc.pending_providers == ["speed_analysis"]
        assert "speed_analysis" not in doc.provider_errors

    @pytest.mark.asyncio
    async def test_deep_scan_only_with_project_id(self, fake_adapters):
        site_audit = FakeAdapter(SITE_AUDIT, error="HTTP 403")
        orchestrator = AuditOrchestrator(provider_set(fake_adapters, site_audit=site_audit))

        doc = await orchestrator.create("https://acme-plumbing.com")
        assert site_audit.calls == 0
        assert SITE_AUDIT not in doc.provider_errors

        doc = await orchestrator.create("https://acme-plumbing.com", deep_scan_id="4242")
        assert site_audit.calls == 1
        assert site_audit.targets[0].deep_scan_id == "4242"
        assert doc.provider_errors[SITE_AUDIT] == "site_audit: HTTP 403"
        assert doc.pending_providers == []

    @pytest.mark.asyncio
    async def test_deep_scan_feeds_site_health(self, orchestrator):
        doc = await orchestrator.create("https://acme-plumbing.com", deep_scan_id="4242")
        assert doc.site_performance.find("Site Health").value == "91%"

    @pytest.mark.asyncio
    async def test_site_unreachable(self):
        adapters = {
            name: FakeAdapter(name, error="Could not reach https://nowhere.invalid")
            for name in ProviderName
        }
        orchestrator = AuditOrchestrator(
            provider_set(adapters, check_transport=unreachable_transport())
        )

        doc = await orchestrator.create("nowhere.invalid")

        assert doc.pending_providers == [str(name) for name in ProviderName]
        assert set(doc.provider_errors) == {str(name) for name in ProviderName}
        assert doc.sources.has_sitemap is None
        assert doc.sources.has_robots is None
        for field in ("site_performance", "search_visibility", "content", "social", "local_entity"):
            group = getattr(doc, field)
            assert {m.status for m in group.metrics} == {Status.WARNING}
            assert group.score == 50
        assert doc.keywords == []
        assert doc.business_listing is None

    @pytest.mark.asyncio
    async def test_bad_url_calls_nothing(self, orchestrator, fake_adapters):
        with pytest.raises(BadRequestError):
            await orchestrator.create("   ")
        assert all(adapter.calls == 0 for adapter in fake_adapters.values())
