# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# No network: Redis is an in-memory fake, Clerk and Together are mocks.
# app.state is initialized by hand (ASGITransport doesn't run lifespan).
# ─────────────────────────────────────────────────────────────────────────────

import os

# Set env BEFORE importing app modules
os.environ["LOG_JSON"] = "false"
os.environ["ENABLE_DEBUG_ROUTES"] = "true"

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from app.config import Settings, get_settings
from app.main import create_app
from app.services.identity import ClerkUserClient, MetadataWriter
from app.services.image_client import ImageGenerated, TogetherImageClient
from app.services.pipeline import LogoPipeline
from app.services.quota import FixedWindowRateLimiter
from fakes import (
    FIXED_NOW,
    GENERATED_IMAGE,
    VALID_TOKEN,
    FakeRedis,
    StubSessionVerifier,
)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing: quota store on, no observability."""
    return Settings(
        _env_file=None,
        together_api_key=SecretStr("service-key"),
        helicone_api_key=SecretStr(""),
        redis_url="redis://quota.test:6379/0",
        clerk_secret_key=SecretStr("sk_test"),
        enable_debug_routes=True,
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def limiter(fake_redis: FakeRedis) -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(fake_redis, clock=lambda: FIXED_NOW)


@pytest.fixture
def clerk_client() -> ClerkUserClient:
    client = MagicMock(spec=ClerkUserClient)
    client.update_user_metadata = AsyncMock(return_value=None)
    return client


@pytest.fixture
def metadata_writer(clerk_client: ClerkUserClient) -> MetadataWriter:
    return MetadataWriter(clerk_client)


@pytest.fixture
def image_client() -> TogetherImageClient:
    client = MagicMock(spec=TogetherImageClient)
    client.generate = AsyncMock(return_value=ImageGenerated(GENERATED_IMAGE))
    return client


@pytest.fixture
def pipeline(
    test_settings: Settings,
    image_client: TogetherImageClient,
    metadata_writer: MetadataWriter,
    limiter: FixedWindowRateLimiter,
) -> LogoPipeline:
    return LogoPipeline(test_settings, image_client, metadata_writer, limiter=limiter)


@pytest.fixture
def logo_body() -> dict:
    return {
        "companyName": "Acme",
        "selectedStyle": "Minimal",
        "selectedPrimaryColor": "#112233",
        "selectedBackgroundColor": "#ffffff",
    }


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
async def client(
    test_settings: Settings,
    pipeline: LogoPipeline,
    limiter: FixedWindowRateLimiter,
    metadata_writer: MetadataWriter,
):
    """httpx AsyncClient with manually-initialized app state."""
    app = create_app()
    app.state.settings = test_settings
    app.state.session_verifier = StubSessionVerifier()
    app.state.quota_limiter = limiter
    app.state.metadata_writer = metadata_writer
    app.state.logo_pipeline = pipeline

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac
