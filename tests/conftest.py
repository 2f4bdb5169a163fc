"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment before any app code runs
os.environ["ENV"] = "test"
os.environ["STORE_BACKEND"] = "memory"
for _name in (
    "GOOGLE_SERVICE_ACCOUNT_EMAIL",
    "GOOGLE_SERVICE_ACCOUNT_KEY",
    "SHEETS_SPREADSHEET_ID",
):
    os.environ.pop(_name, None)

from api.store import InMemoryAuditStore  # noqa: E402
from tests.fixtures.providers import (  # noqa: E402
    FakeAdapter,
    RecordingAuditLogger,
    healthy_adapters,
    provider_set,
)
from worker.providers.models import ProviderName  # noqa: E402
from worker.providers.registry import ProviderSet  # noqa: E402
from worker.tasks.audit import AuditOrchestrator  # noqa: E402


@pytest.fixture
def memory_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def fake_adapters() -> dict[ProviderName, FakeAdapter]:
    """One healthy fake per tracked provider; tests flip ``error`` as needed."""
    return healthy_adapters()


@pytest.fixture
def providers(fake_adapters: dict[ProviderName, FakeAdapter]) -> ProviderSet:
    return provider_set(fake_adapters)


@pytest.fixture
def orchestrator(providers: ProviderSet) -> AuditOrchestrator:
    return AuditOrchestrator(providers)


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
async def client(
    memory_store: InMemoryAuditStore,
    providers: ProviderSet,
    audit_logger: RecordingAuditLogger,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client wired to the in-memory store and fake adapters."""
    from api.deps import get_audit_logger, get_provider_set, get_store
    from api.main import app

    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_provider_set] = lambda: providers
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
