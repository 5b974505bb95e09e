# ─────────────────────────────────────────────────────────────────────────────
# Session Authentication — Clerk session tokens
# ─────────────────────────────────────────────────────────────────────────────
# Resolves the caller from a Clerk session JWT, read from the
# "Authorization: Bearer" header or the "__session" cookie.
#
# Design decisions:
#   - RS256 signature verified against Clerk's JWKS via PyJWKClient, which
#     caches keys; the JWKS fetch is synchronous so it runs in the executor.
#   - Invalid, expired or foreign tokens resolve to "no user". Network
#     failures reaching the JWKS endpoint propagate.
#   - Anonymous callers get 404 with an empty body so the endpoint reveals
#     nothing to unauthenticated probes.
# ─────────────────────────────────────────────────────────────────────────────


import asyncio
from dataclasses import dataclass
from typing import Any

import jwt
import structlog
from fastapi import Request
from jwt.exceptions import PyJWKClientConnectionError, PyJWKClientError

from app.config import Settings
from app.exceptions import NotAuthenticatedError

logger = structlog.get_logger(__name__)

_SESSION_COOKIE = "__session"
_JWKS_CACHE_SECONDS = 300
_CLOCK_SKEW_SECONDS = 5


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller. ``id`` is the Clerk user id (``sub``)."""

    id: str
    session_id: str | None = None


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("authorization", "")
    scheme, _, credentials = auth_header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(_SESSION_COOKIE) or None


class ClerkSessionVerifier:
    """Verify Clerk session tokens and return the caller identity."""

    def __init__(
        self,
        jwks_url: str,
        *,
        authorized_parties: frozenset[str] = frozenset(),
        jwk_client: Any = None,
    ) -> None:
        self._authorized_parties = authorized_parties
        self._jwk_client = jwk_client or jwt.PyJWKClient(
            jwks_url, cache_keys=True, lifespan=_JWKS_CACHE_SECONDS
        )

    def _decode(self, token: str) -> dict[str, Any]:
        signing_key = self._jwk_client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            options={"require": ["exp", "sub"]},
            leeway=_CLOCK_SKEW_SECONDS,
        )

    async def current_user(self, request: Request) -> CurrentUser | None:
        """Return the caller, or None when there is no valid session."""
        token = _extract_token(request)
        if token is None:
            return None

        loop = asyncio.get_running_loop()
        try:
            claims = await loop.run_in_executor(None, self._decode, token)
        except PyJWKClientConnectionError:
            raise
        except (jwt.InvalidTokenError, PyJWKClientError) as exc:
            logger.info("session_rejected", reason=type(exc).__name__)
            return None

        azp = claims.get("azp")
        if self._authorized_parties and azp not in self._authorized_parties:
            logger.info("session_rejected", reason="unauthorized_party", azp=azp)
            return None

        return CurrentUser(id=claims["sub"], session_id=claims.get("sid"))


def build_session_verifier(settings: Settings) -> ClerkSessionVerifier | None:
    """Create the verifier, or None when no JWKS endpoint is configured."""
    if not settings.clerk_jwks_url:
        logger.warning("session_auth_unconfigured", reason="CLERK_JWKS_URL not set")
        return None
    parties = frozenset(
        p.strip() for p in settings.clerk_authorized_parties.split(",") if p.strip()
    )
    return ClerkSessionVerifier(settings.clerk_jwks_url, authorized_parties=parties)


async def require_user(request: Request) -> CurrentUser:
    """FastAPI dependency: the authenticated caller, or 404."""
    verifier: ClerkSessionVerifier | None = request.app.state.session_verifier
    user = await verifier.current_user(request) if verifier is not None else None
    if user is None:
        raise NotAuthenticatedError()
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user
