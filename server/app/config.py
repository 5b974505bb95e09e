# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    Optional integrations (Helicone, Redis, Clerk) switch on when their
    variable is present and degrade to "off" when it is empty.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env")

    # ── Image provider ───────────────────────────────────────────────────────
    together_api_key: SecretStr = SecretStr("")
    together_base_url: str = "https://api.together.xyz/v1"

    # ── Observability proxy ──────────────────────────────────────────────────
    helicone_api_key: SecretStr = SecretStr("")
    helicone_base_url: str = "https://together.helicone.ai/v1"

    # ── Quota store ──────────────────────────────────────────────────────────
    redis_url: str = ""

    # ── Identity (Clerk) ─────────────────────────────────────────────────────
    clerk_secret_key: SecretStr = SecretStr("")
    clerk_jwks_url: str = ""
    clerk_api_url: str = "https://api.clerk.com/v1"
    clerk_authorized_parties: str = ""

    # ── HTTP ─────────────────────────────────────────────────────────────────
    port: int = 8080
    allowed_origins: str = ""

    # ── Feature flags ────────────────────────────────────────────────────────
    enable_debug_routes: bool = False

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True  # JSON logs for Cloud Logging

    @property
    def observability_enabled(self) -> bool:
        return bool(self.helicone_api_key.get_secret_value())

    @property
    def quota_store_configured(self) -> bool:
        return bool(self.redis_url)


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
