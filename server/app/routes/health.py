# ─────────────────────────────────────────────────────────────────────────────
# Health Check Routes — liveness and readiness
# ─────────────────────────────────────────────────────────────────────────────
#   /health        → Liveness probe. "Is the process alive?" Near-zero cost.
#   /health/ready  → Readiness probe. "Can it serve traffic?"
#                    Needs a service image credential, and a reachable quota
#                    store when one is configured.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.config import Settings
from app.dependencies import get_quota_limiter, get_settings_dep
from app.schemas import LivenessResponse, ReadinessResponse
from app.services.quota import FixedWindowRateLimiter

router = APIRouter()


@router.get("/health", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe: is the process alive? No deps, no I/O."""
    return LivenessResponse(status="ok")


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    settings: Settings = Depends(get_settings_dep),
    limiter: FixedWindowRateLimiter | None = Depends(get_quota_limiter),
) -> JSONResponse:
    """Readiness probe. Returns 503 so the platform withholds traffic."""
    credential = bool(settings.together_api_key.get_secret_value())
    store_connected = await limiter.ping() if limiter is not None else None

    ready = credential and store_connected is not False

    response = ReadinessResponse(
        status="ready" if ready else "not_ready",
        image_credential_configured=credential,
        quota_enforcement=limiter is not None,
        quota_store_connected=store_connected,
        observability=settings.observability_enabled,
    )

    return JSONResponse(
        status_code=200 if ready else 503,
        content=response.model_dump(),
    )
