# ─────────────────────────────────────────────────────────────────────────────
# Logo Pipeline — core request-handling logic
# ─────────────────────────────────────────────────────────────────────────────
# Endpoints delegate here. This owns:
#   - Policy selection (credential, observability route, quota on/off)
#   - Quota enforcement + remaining-count metadata
#   - Prompt construction
#   - Generation call and mapping of the provider result
# ─────────────────────────────────────────────────────────────────────────────


import time
from typing import Any

import structlog
from opentelemetry import trace

from app.auth import CurrentUser
from app.config import Settings
from app.exceptions import (
    BillingRequiredError,
    ImageProviderError,
    InvalidAPIKeyError,
    QuotaExceededError,
)
from app.pipeline.prompt_templates import build_logo_prompt
from app.schemas import LogoRequest
from app.services.identity import MetadataWriter
from app.services.image_client import (
    AccountBlocked,
    ImageGenerated,
    InvalidAPIKey,
    ProviderFailure,
    TogetherImageClient,
    select_provider_route,
)
from app.services.quota import FixedWindowRateLimiter

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class LogoPipeline:
    """Orchestrates: policy → quota → prompt → generation → result mapping.

    Collaborators are built once in the app lifespan and passed in. The
    limiter is None when no quota store is configured.
    """

    def __init__(
        self,
        settings: Settings,
        image_client: TogetherImageClient,
        metadata: MetadataWriter,
        limiter: FixedWindowRateLimiter | None = None,
    ) -> None:
        self._settings = settings
        self._image_client = image_client
        self._metadata = metadata
        self._limiter = limiter

    async def generate(self, user: CurrentUser, request: LogoRequest) -> dict[str, Any]:
        """Run one logo request to completion and return the image object."""
        with tracer.start_as_current_span("generate_logo") as span:
            span.set_attribute("style", request.selected_style.value)
            return await self._generate_traced(user, request, span)

    async def _generate_traced(
        self, user: CurrentUser, request: LogoRequest, span: trace.Span
    ) -> dict[str, Any]:
        start = time.perf_counter()

        # 1. Policy selection
        route = select_provider_route(self._settings, request.byok_key)
        enforce_quota = self._limiter is not None and not route.byok
        span.set_attribute("byok", route.byok)
        span.set_attribute("quota_enforced", enforce_quota)

        # 2. BYOK marker, written regardless of how generation turns out
        if route.byok:
            self._metadata.record_byok(user.id)

        # 3. Quota
        if enforce_quota:
            with tracer.start_as_current_span("quota_consume"):
                outcome = await self._limiter.limit(user.id)
            self._metadata.record_remaining(user.id, outcome.remaining)
            if not outcome.success:
                logger.info("quota_exhausted", user_id=user.id, reset_ms=outcome.reset_ms)
                raise QuotaExceededError()

        # 4. Prompt
        prompt = build_logo_prompt(request)
        logger.debug("logo_prompt", prompt=prompt)

        # 5. Generation
        with tracer.start_as_current_span("image_generation"):
            result = await self._image_client.generate(prompt, route)

        # 6. Result mapping
        if isinstance(result, ImageGenerated):
            elapsed = int((time.perf_counter() - start) * 1000)
            span.set_attribute("latency_ms", elapsed)
            logger.info(
                "logo_generated",
                user_id=user.id,
                style=request.selected_style.value,
                byok=route.byok,
                time_ms=elapsed,
            )
            return result.image
        if isinstance(result, InvalidAPIKey):
            raise InvalidAPIKeyError()
        if isinstance(result, AccountBlocked):
            raise BillingRequiredError()
        if isinstance(result, ProviderFailure):
            raise ImageProviderError(result.status_code, result.body)
        raise TypeError(f"Unexpected generation result: {result!r}")
