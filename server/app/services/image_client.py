# ─────────────────────────────────────────────────────────────────────────────
# Image Client — Together AI images endpoint
# ─────────────────────────────────────────────────────────────────────────────
# Returns a tagged result instead of raising on provider errors, so callers
# match on the outcome rather than parsing exception shapes:
#   ImageGenerated | InvalidAPIKey | AccountBlocked | ProviderFailure
# Transport errors (DNS, connection reset, ...) are not results; they raise.
# ─────────────────────────────────────────────────────────────────────────────


import random
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import structlog

from app.config import Settings

logger = structlog.get_logger(__name__)

# ── Generation parameters ────────────────────────────────────────────────────
GENERATION_MODEL = "black-forest-labs/FLUX.1.1-pro"
IMAGE_SIZE = 768
GENERATION_STEPS = 4
NEGATIVE_PROMPT = (
    "different colors, alternate colors, modified colors, wrong colors, color variation"
)
CFG_SCALE = 8  # high prompt adherence
RESPONSE_FORMAT = "base64"
SEED_RANGE = 1_000_000


def random_seed() -> int:
    return random.randrange(SEED_RANGE)


# ── Results ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ImageGenerated:
    image: dict[str, Any]


@dataclass(frozen=True)
class InvalidAPIKey:
    message: str | None = None


@dataclass(frozen=True)
class AccountBlocked:
    message: str | None = None


@dataclass(frozen=True)
class ProviderFailure:
    status_code: int
    body: Any


GenerationResult = ImageGenerated | InvalidAPIKey | AccountBlocked | ProviderFailure


# ── Routing ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProviderRoute:
    """Where and with which credential one request reaches the provider."""

    base_url: str
    api_key: str = field(repr=False)
    headers: dict[str, str] = field(default_factory=dict, repr=False)
    byok: bool = False


def select_provider_route(settings: Settings, user_api_key: str | None) -> ProviderRoute:
    """Resolve credential and observability routing for one request.

    A caller-supplied key replaces the service key for this request only.
    With a Helicone key configured, traffic goes through the Helicone proxy
    and is tagged with whether the caller brought their own key (the key
    itself is never sent to Helicone as a property).
    """
    byok = bool(user_api_key)
    api_key = user_api_key or settings.together_api_key.get_secret_value()

    if not settings.observability_enabled:
        return ProviderRoute(base_url=settings.together_base_url, api_key=api_key, byok=byok)

    return ProviderRoute(
        base_url=settings.helicone_base_url,
        api_key=api_key,
        headers={
            "Helicone-Auth": f"Bearer {settings.helicone_api_key.get_secret_value()}",
            "Helicone-Property-LOGOBYOK": "true" if byok else "false",
        },
        byok=byok,
    )


# ── Error classification ─────────────────────────────────────────────────────


def classify_error(status_code: int, body: Any) -> GenerationResult:
    """Map a non-2xx provider response to a result variant.

    Together answers errors as ``{"error": {"code": ..., "type": ..., "message": ...}}``.
    Only the shape is inspected, never the message text.
    """
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("message")
        if error.get("code") == "invalid_api_key":
            return InvalidAPIKey(message)
        if error.get("type") == "request_blocked":
            return AccountBlocked(message)
    return ProviderFailure(status_code, body)


# ── Client ───────────────────────────────────────────────────────────────────


class TogetherImageClient:
    """Submit a prompt to the images endpoint and return the first image."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        seed_source: Callable[[], int] = random_seed,
    ) -> None:
        self._http = http
        self._seed_source = seed_source

    def build_payload(self, prompt: str) -> dict[str, Any]:
        """Fixed generation parameters plus a fresh seed per call."""
        return {
            "prompt": prompt,
            "model": GENERATION_MODEL,
            "width": IMAGE_SIZE,
            "height": IMAGE_SIZE,
            "steps": GENERATION_STEPS,
            "negative_prompt": NEGATIVE_PROMPT,
            "response_format": RESPONSE_FORMAT,
            "seed": self._seed_source(),
            "cfg_scale": CFG_SCALE,
        }

    async def generate(self, prompt: str, route: ProviderRoute) -> GenerationResult:
        payload = self.build_payload(prompt)
        response = await self._http.post(
            f"{route.base_url.rstrip('/')}/images/generations",
            headers={"Authorization": f"Bearer {route.api_key}", **route.headers},
            json=payload,
        )

        if response.is_success:
            return ImageGenerated(response.json()["data"][0])

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        result = classify_error(response.status_code, body)
        logger.warning(
            "image_provider_error",
            status=response.status_code,
            result=type(result).__name__,
            byok=route.byok,
        )
        return result
