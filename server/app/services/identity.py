# ─────────────────────────────────────────────────────────────────────────────
# Identity Metadata — Clerk Backend API writes
# ─────────────────────────────────────────────────────────────────────────────
# The web client reads `unsafe_metadata.remaining` to show how many free
# generations are left ("BYOK" when the caller uses their own key).
# Writes are best-effort: they run as background tasks and their failure
# never changes the response of the request that scheduled them.
# ─────────────────────────────────────────────────────────────────────────────


import asyncio
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

BYOK_MARKER = "BYOK"


class ClerkUserClient:
    """Thin async client for the Clerk users API."""

    def __init__(self, http: httpx.AsyncClient, *, api_url: str, secret_key: str) -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")
        self._secret_key = secret_key

    async def update_user_metadata(self, user_id: str, unsafe_metadata: dict[str, Any]) -> None:
        """Merge ``unsafe_metadata`` into the user's record."""
        response = await self._http.patch(
            f"{self._api_url}/users/{user_id}/metadata",
            headers={"Authorization": f"Bearer {self._secret_key}"},
            json={"unsafe_metadata": unsafe_metadata},
        )
        response.raise_for_status()


class MetadataWriter:
    """Schedules fire-and-forget metadata writes.

    Pending tasks are held in a set so they are not garbage collected
    mid-flight; ``drain()`` waits for them (used on shutdown and in tests).
    """

    def __init__(self, client: ClerkUserClient | None) -> None:
        self._client = client
        self._pending: set[asyncio.Task] = set()

    def schedule(self, user_id: str, unsafe_metadata: dict[str, Any]) -> None:
        if self._client is None:
            logger.debug("metadata_write_skipped", user_id=user_id, reason="clerk_unconfigured")
            return
        task = asyncio.create_task(self._write(user_id, unsafe_metadata))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, user_id: str, unsafe_metadata: dict[str, Any]) -> None:
        try:
            await self._client.update_user_metadata(user_id, unsafe_metadata)
        except Exception:
            logger.warning(
                "metadata_write_failed",
                user_id=user_id,
                metadata=unsafe_metadata,
                exc_info=True,
            )
        else:
            logger.debug("metadata_written", user_id=user_id, metadata=unsafe_metadata)

    async def drain(self) -> None:
        """Wait for every scheduled write to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    def record_remaining(self, user_id: str, remaining: int) -> None:
        self.schedule(user_id, {"remaining": remaining})

    def record_byok(self, user_id: str) -> None:
        self.schedule(user_id, {"remaining": BYOK_MARKER})
