"""Tests for pending-provider refresh."""

import pytest

from api.exceptions import ConflictError, NotFoundError
from api.models.audit import RecapTab
from api.store import InMemoryAuditStore
from tests.fixtures.providers import (
    files_present_transport,
    speed_analysis_result,
    unreachable_transport,
)
from worker.providers.models import ProviderName
from worker.scoring.models import Status
from worker.tasks.fanout import ProviderFailure, ProviderSuccess
from worker.tasks.refresh import RefreshCoordinator, apply_refresh

SPEED = ProviderName.SPEED_ANALYSIS
SCAN = ProviderName.WEBSITE_SCAN


class RacingStore(InMemoryAuditStore):
    """Lets a rival recap edit land just before each of the first ``races`` writes."""

    def __init__(self, races: int = 1):
        super().__init__()
        self.races = races
        self.attempts = 0

    async def compare_and_set(self, doc, expected_version):
        self.attempts += 1
        if self.races > 0:
            self.races -= 1
            rival = await self.get(doc.id)
            rival.recap = {"website": RecapTab(summary="Edited meanwhile")}
            rival.version += 1
            await super().compare_and_set(rival, rival.version - 1)
        return await super().compare_and_set(doc, expected_version)


async def seed(store, orchestrator, **kwargs):
    doc = await orchestrator.create("https://acme-plumbing.com", **kwargs)
    assert await store.create(doc)
    return doc


class TestRefreshCoordinator:
    """Tests for RefreshCoordinator.refresh."""

    @pytest.mark.asyncio
    async def test_nothing_pending_is_a_no_op(self, memory_store, orchestrator, fake_adapters):
        doc = await seed(memory_store, orchestrator)

        refreshed = await RefreshCoordinator(memory_store, orchestrator).refresh(doc.id)

        assert refreshed.version == 0
        assert all(adapter.calls == 1 for adapter in fake_adapters.values())

    @pytest.mark.asyncio
    async def test_unknown_audit(self, memory_store, orchestrator):
        with pytest.raises(NotFoundError):
            await RefreshCoordinator(memory_store, orchestrator).refresh("zzzzzzzzzz")

    @pytest.mark.asyncio
    async def test_recovered_provider(self, memory_store, orchestrator, fake_adapters):
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await seed(memory_store, orchestrator)
        assert doc.site_performance.find("GTmetrix Performance").status == Status.WARNING

        fake_adapters[SPEED].error = None
        refreshed = await RefreshCoordinator(memory_store, orchestrator).refresh(doc.id)

        assert refreshed.pending_providers == []
        assert refreshed.provider_errors == {}
        assert refreshed.retry_counts == {}
        assert refreshed.version == 1
        assert refreshed.site_performance.find("GTmetrix Performance").value == "82%"
        # Only the pending provider is asked again
        assert fake_adapters[SPEED].calls == 2
        assert fake_adapters[SCAN].calls == 1
        assert (await memory_store.get(doc.id)).model_dump() == refreshed.model_dump()

    @pytest.mark.asyncio
    async def test_shared_group_keeps_other_provider_data(
        self, memory_store, orchestrator, fake_adapters
    ):
        fake_adapters[SCAN].error = "Could not reach https://acme-plumbing.com"
        doc = await seed(memory_store, orchestrator)
        assert doc.site_performance.find("GTmetrix Performance").value == "82%"
        assert doc.site_performance.find("Alt Tags").value == "Estimated"

        fake_adapters[SCAN].error = None
        refreshed = await RefreshCoordinator(memory_store, orchestrator).refresh(doc.id)

        performance = refreshed.site_performance
        assert performance.find("Alt Tags").value == "3 of 12 missing"
        assert performance.find("GTmetrix Performance").value == "82%"
        assert fake_adapters[SPEED].calls == 1

    @pytest.mark.asyncio
    async def test_still_failing_counts_a_retry(self, memory_store, orchestrator, fake_adapters):
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await seed(memory_store, orchestrator)

        refreshed = await RefreshCoordinator(memory_store, orchestrator).refresh(doc.id)

        assert refreshed.pending_providers == ["speed_analysis"]
        assert refreshed.retry_counts == {"speed_analysis": 1}
        assert refreshed.unavailable_providers == []

    @pytest.mark.asyncio
    async def test_gives_up_at_ceiling(self, memory_store, orchestrator, fake_adapters):
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await seed(memory_store, orchestrator)
        coordinator = RefreshCoordinator(memory_store, orchestrator, retry_ceiling=3)

        for _ in range(3):
            refreshed = await coordinator.refresh(doc.id)

        assert refreshed.pending_providers == []
        assert refreshed.unavailable_providers == ["speed_analysis"]
        assert refreshed.retry_counts == {"speed_analysis": 3}
        assert "speed_analysis" in refreshed.provider_errors
        assert refreshed.site_performance.find("GTmetrix Performance").status == Status.WARNING
        assert fake_adapters[SPEED].calls == 4

        # Abandoned providers are not asked again
        await coordinator.refresh(doc.id)
        assert fake_adapters[SPEED].calls == 4

    @pytest.mark.asyncio
    async def test_unknown_checks_are_retried(
        self, memory_store, orchestrator, providers, fake_adapters
    ):
        for adapter in fake_adapters.values():
            adapter.error = "Could not reach https://acme-plumbing.com"
        providers.check_transport = unreachable_transport()
        doc = await seed(memory_store, orchestrator)
        assert doc.sources.has_sitemap is None
        assert doc.search_visibility.find("XML Sitemap Status").value == "Checking..."

        for adapter in fake_adapters.values():
            adapter.error = None
        providers.check_transport = files_present_transport()
        refreshed = await RefreshCoordinator(memory_store, orchestrator).refresh(doc.id)

        assert refreshed.pending_providers == []
        assert refreshed.search_visibility.find("XML Sitemap Status").value == "Found"
        assert refreshed.search_visibility.find("Robots.txt Configuration").value == "Yes"

    @pytest.mark.asyncio
    async def test_conflict_reapplies_on_fresh_copy(self, orchestrator, fake_adapters):
        store = RacingStore(races=1)
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await seed(store, orchestrator)

        fake_adapters[SPEED].error = None
        refreshed = await RefreshCoordinator(store, orchestrator).refresh(doc.id)

        assert store.attempts == 2
        assert refreshed.version == 2
        assert refreshed.pending_providers == []
        assert refreshed.recap["website"].summary == "Edited meanwhile"
        stored = await store.get(doc.id)
        assert stored.recap["website"].summary == "Edited meanwhile"
        assert stored.site_performance.find("GTmetrix Performance").value == "82%"

    @pytest.mark.asyncio
    async def test_conflict_every_time(self, orchestrator, fake_adapters):
        store = RacingStore(races=10)
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await seed(store, orchestrator)

        with pytest.raises(ConflictError):
            await RefreshCoordinator(store, orchestrator, max_write_attempts=3).refresh(doc.id)
        assert store.attempts == 3


class TestApplyRefresh:
    """Tests for folding one refresh cycle into a document."""

    @pytest.mark.asyncio
    async def test_ignores_providers_no_longer_pending(self, orchestrator, fake_adapters):
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await orchestrator.create("https://acme-plumbing.com")
        before = doc.search_visibility.model_dump()

        rebuilt = apply_refresh(
            doc,
            {
                "speed_analysis": ProviderFailure("speed_analysis", "still down"),
                "search_metrics": ProviderFailure("search_metrics", "late failure"),
            },
            checks={},
            retry_ceiling=3,
        )

        assert rebuilt == []
        assert doc.provider_errors["speed_analysis"] == "still down"
        assert "search_metrics" not in doc.provider_errors
        assert doc.search_visibility.model_dump() == before

    @pytest.mark.asyncio
    async def test_rebuilds_only_affected_groups(self, orchestrator, fake_adapters):
        fake_adapters[SPEED].error = "HTTP 500 from gtmetrix.com"
        doc = await orchestrator.create("https://acme-plumbing.com")

        rebuilt = apply_refresh(
            doc,
            {"speed_analysis": ProviderSuccess("speed_analysis", speed_analysis_result())},
            checks={},
            retry_ceiling=3,
        )

        assert rebuilt == ["site_performance"]
