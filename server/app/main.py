# ─────────────────────────────────────────────────────────────────────────────
# FastAPI Application Factory + Lifespan
# ─────────────────────────────────────────────────────────────────────────────
# Entrypoint: uvicorn app.main:create_app --factory --host 0.0.0.0 --port 8080
# The --factory flag tells uvicorn to call create_app() for the app instance.
# ─────────────────────────────────────────────────────────────────────────────

import os
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.auth import build_session_verifier
from app.config import get_settings
from app.exceptions import register_exception_handlers
from app.logging_config import configure_logging
from app.middleware import RequestContextMiddleware
from app.routes import debug, generate, health
from app.services.identity import ClerkUserClient, MetadataWriter
from app.services.image_client import TogetherImageClient
from app.services.pipeline import LogoPipeline
from app.services.quota import build_quota_limiter

logger = structlog.get_logger(__name__)


def _configure_otel(exporter_type: str) -> None:
    """Configure OpenTelemetry tracing.

    Supports "console" for dev and "gcp" for Cloud Trace.
    No-op if the exporter type is unknown.
    """
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(
                BatchSpanProcessor(CloudTraceSpanExporter())
            )
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return

    from opentelemetry import trace

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown lifecycle.

    All stateful objects (HTTP client, quota limiter, session verifier,
    pipeline) are created here and stored in app.state for injection via
    Depends(). Nothing is created at import time.
    """
    settings = get_settings()

    # ── Configure OpenTelemetry ──────────────────────────────────────────────
    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        _configure_otel(otel_exporter)

    # One pooled client for Clerk and Together. No application-level timeout:
    # image generation can take as long as the provider needs.
    async with httpx.AsyncClient(timeout=None) as http:
        clerk_secret = settings.clerk_secret_key.get_secret_value()
        clerk = (
            ClerkUserClient(http, api_url=settings.clerk_api_url, secret_key=clerk_secret)
            if clerk_secret
            else None
        )
        if clerk is None:
            logger.warning("metadata_writes_disabled", reason="CLERK_SECRET_KEY not set")
        metadata = MetadataWriter(clerk)

        limiter = build_quota_limiter(settings)

        if not settings.observability_enabled:
            logger.info("observability_proxy_disabled", reason="HELICONE_API_KEY not set")

        try:
            app.state.settings = settings
            app.state.session_verifier = build_session_verifier(settings)
            app.state.quota_limiter = limiter
            app.state.metadata_writer = metadata
            app.state.logo_pipeline = LogoPipeline(
                settings,
                TogetherImageClient(http),
                metadata,
                limiter=limiter,
            )

            yield  # App is running, serving requests
        finally:
            # Let in-flight metadata writes land before the client closes
            await metadata.drain()
            if limiter is not None:
                await limiter.close()


def _parse_origins(allowed_origins: str) -> list[str]:
    """Parse comma-separated origin string into a list.

    Returns ``["*"]`` if the input is empty (development mode).
    Strips whitespace from each origin.
    """
    if not allowed_origins.strip():
        return ["*"]
    return [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn app.main:create_app --factory

    The --factory flag tells uvicorn to call this function to get the app,
    rather than importing a module-level variable. This avoids side effects
    at import time and makes testing cleaner.
    """
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    app = FastAPI(
        title="Logo Creator",
        description="Generates brand logos from a short description via FLUX",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ── Middleware stack ─────────────────────────────────────────────────────
    # Execution order for an incoming request:
    #   CORS → RequestContext → route handler

    # Innermost, logs timing + request ID
    app.add_middleware(RequestContextMiddleware)

    # Outermost, CORS headers + preflight handling. The session cookie
    # needs credentials, which browsers refuse together with a "*" origin.
    origins = _parse_origins(settings.allowed_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ── Exception handlers ───────────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routes ───────────────────────────────────────────────────────────────
    app.include_router(health.router, tags=["health"])
    app.include_router(generate.router, tags=["generate"])
    if settings.enable_debug_routes:
        app.include_router(debug.router, prefix="/debug", tags=["debug"])

    return app
