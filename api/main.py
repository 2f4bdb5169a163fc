"""FastAPI application factory and main entrypoint."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.config import API_VERSION, Settings, get_settings
from api.exceptions import InboundError
from api.logging import setup_logging
from api.store import build_store
from worker.providers.registry import build_provider_set
from worker.sinks.sheets import build_audit_logger

setup_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info(
        "api_starting",
        env=settings.env,
        debug=settings.debug,
        store_backend=settings.store_backend,
        sheets_enabled=settings.sheets_enabled,
        version=API_VERSION,
    )

    yield

    await app.state.store.close()
    logger.info("api_stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Inbound Digital Audit API",
        description="Multi-provider website audits for lead generation",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Pipeline collaborators; routes reach them through api.deps
    app.state.store = build_store(settings)
    app.state.providers = build_provider_set(settings)
    app.state.audit_logger = build_audit_logger(settings)

    # Middleware (order matters - first added = last executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.middleware import LoggingMiddleware, RequestIDMiddleware

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    from api.routers import audits, health

    app.include_router(health.router)
    app.include_router(audits.router)

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(InboundError)
    async def inbound_error_handler(request: Request, exc: InboundError) -> ORJSONResponse:
        logger.warning(
            "application_error",
            error_code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    **({"details": exc.details} if exc.details else {}),
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request body and query validation errors."""
        errors = exc.errors()
        first_error = errors[0] if errors else {"msg": "Validation error"}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        logger.warning("validation_error", path=request.url.path, errors=errors)
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": {
                    "code": "validation_error",
                    "message": first_error.get("msg", "Validation error"),
                    "field": field or None,
                    "details": {"errors": errors},
                }
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.error(
            "unhandled_exception",
            exc_info=exc,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "internal_error",
                    "message": "An unexpected error occurred",
                }
            },
        )


app = create_app()
