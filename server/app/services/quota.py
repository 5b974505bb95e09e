# ─────────────────────────────────────────────────────────────────────────────
# Quota Limiter — fixed-window counter in Redis
# ─────────────────────────────────────────────────────────────────────────────
# Key layout: <prefix>:<identifier>:<window index>
# The window index is floor(now / window), so every caller's counter resets
# on the same fixed boundaries. INCR + PEXPIRE run in one Lua script, which
# makes consume-and-check atomic across concurrent requests and instances.
# ─────────────────────────────────────────────────────────────────────────────


import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

import redis.asyncio as redis
import structlog

from app.config import Settings

logger = structlog.get_logger(__name__)

# 3 generations per 60 days per user on the shared key.
QUOTA_LIMIT = 3
QUOTA_WINDOW = timedelta(days=60)
QUOTA_PREFIX = "logocreator"

_FIXED_WINDOW_SCRIPT = """
local count = redis.call("INCR", KEYS[1])
if count == 1 then
  redis.call("PEXPIRE", KEYS[1], ARGV[1])
end
return count
"""


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of consuming one unit."""

    success: bool
    limit: int
    remaining: int
    reset_ms: int  # epoch milliseconds at which the current window ends


class FixedWindowRateLimiter:
    """Consume-one-unit limiter over a Redis counter.

    Built once per deployment in the app lifespan and injected into the
    logo handler. The counter lifecycle (creation, expiry) lives entirely in
    Redis; this class never resets or deletes keys.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        limit: int = QUOTA_LIMIT,
        window: timedelta = QUOTA_WINDOW,
        prefix: str = QUOTA_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._limit = limit
        self._window_ms = int(window.total_seconds() * 1000)
        self._prefix = prefix
        self._clock = clock
        self._script = client.register_script(_FIXED_WINDOW_SCRIPT)

    @property
    def limit_per_window(self) -> int:
        return self._limit

    def _key(self, identifier: str, bucket: int) -> str:
        return f"{self._prefix}:{identifier}:{bucket}"

    async def limit(self, identifier: str) -> RateLimitResult:
        """Consume one unit for ``identifier`` in the current window.

        The counter is incremented even when the allowance is already used
        up, so ``remaining`` stays at zero for the rest of the window.
        """
        now_ms = int(self._clock() * 1000)
        bucket = now_ms // self._window_ms
        count = int(
            await self._script(keys=[self._key(identifier, bucket)], args=[self._window_ms])
        )
        result = RateLimitResult(
            success=count <= self._limit,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_ms=(bucket + 1) * self._window_ms,
        )
        logger.debug(
            "quota_consumed",
            identifier=identifier,
            count=count,
            success=result.success,
            remaining=result.remaining,
        )
        return result

    async def ping(self) -> bool:
        """Whether the backing store answers. Used by the readiness probe."""
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            logger.warning("quota_store_ping_failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._client.aclose()


def build_quota_limiter(settings: Settings) -> FixedWindowRateLimiter | None:
    """Create the limiter when a quota store is configured, else None."""
    if not settings.quota_store_configured:
        logger.warning("quota_enforcement_disabled", reason="REDIS_URL not set")
        return None
    client = redis.from_url(settings.redis_url, decode_responses=True)
    logger.info(
        "quota_enforcement_enabled",
        limit=QUOTA_LIMIT,
        window_days=QUOTA_WINDOW.days,
        prefix=QUOTA_PREFIX,
    )
    return FixedWindowRateLimiter(client)
