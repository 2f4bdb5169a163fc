"""Health check endpoints."""

import time
from datetime import UTC, datetime

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.config import API_VERSION, get_settings
from api.deps import StoreDep

router = APIRouter(tags=["Health"])
logger = structlog.get_logger(__name__)

_server_start_time = time.time()


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field(..., description="Health status: healthy, unhealthy")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    version: str = Field(..., description="API version")
    uptime_seconds: int = Field(..., description="Server uptime in seconds")


class DependencyCheck(BaseModel):
    status: str = Field(..., description="Status: healthy, unhealthy")
    latency_ms: float | None = Field(None, description="Check latency in milliseconds")


class ReadyResponse(HealthResponse):
    """Readiness response with the audit store's status."""

    checks: dict[str, DependencyCheck] = Field(..., description="Individual dependency checks")


class ApiInfoResponse(BaseModel):
    name: str
    version: str
    env: str
    docs: str | None


def _uptime() -> int:
    return int(time.time() - _server_start_time)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Returns healthy while the process is serving. Use /ready for the store."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=API_VERSION,
        uptime_seconds=_uptime(),
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(store: StoreDep) -> ReadyResponse:
    """Ping the audit store."""
    start = time.perf_counter()
    ok = await store.ping()
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    if not ok:
        logger.warning("store_health_check_failed")

    return ReadyResponse(
        status="healthy" if ok else "unhealthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=API_VERSION,
        uptime_seconds=_uptime(),
        checks={
            "store": DependencyCheck(
                status="healthy" if ok else "unhealthy",
                latency_ms=latency_ms if ok else None,
            )
        },
    )


@router.get("/", response_model=ApiInfoResponse)
async def root() -> ApiInfoResponse:
    settings = get_settings()
    return ApiInfoResponse(
        name="Inbound Digital Audit API",
        version=API_VERSION,
        env=settings.env,
        docs="/docs" if settings.debug else None,
    )
