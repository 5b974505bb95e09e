# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# No global variables. Every dependency is explicit in endpoint signatures.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from app.config import Settings
from app.services.pipeline import LogoPipeline
from app.services.quota import FixedWindowRateLimiter


def get_logo_pipeline(request: Request) -> LogoPipeline:
    """Inject LogoPipeline into endpoints via Depends()."""
    return request.app.state.logo_pipeline


def get_quota_limiter(request: Request) -> FixedWindowRateLimiter | None:
    """Inject the quota limiter (None when quota enforcement is off)."""
    return request.app.state.quota_limiter


def get_settings_dep(request: Request) -> Settings:
    """Inject Settings into endpoints via Depends()."""
    return request.app.state.settings
