# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────
# Client-facing errors are plain text, matching what the web client renders
# directly into its toast messages.
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

logger = structlog.get_logger(__name__)


# ── Exception hierarchy ──────────────────────────────────────────────────────


class LogoServiceError(Exception):
    """Base exception for errors translated into a client response."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotAuthenticatedError(LogoServiceError):
    """Raised for anonymous callers. Answers 404 with an empty body."""

    def __init__(self):
        super().__init__("", status_code=404)


class QuotaExceededError(LogoServiceError):
    """Raised when the caller's fixed-window allowance is used up."""

    def __init__(self):
        super().__init__(
            "You've used up all your credits. Enter your own Together API Key "
            "to generate more logos.",
            status_code=429,
        )


class InvalidAPIKeyError(LogoServiceError):
    """Raised when the image provider rejects the credential."""

    def __init__(self):
        super().__init__("Your API key is invalid.", status_code=401)


class BillingRequiredError(LogoServiceError):
    """Raised when the provider blocks the account pending billing details."""

    def __init__(self):
        super().__init__(
            "Your Together AI account needs a credit card on file to use this "
            "app. Please add a credit card at: "
            "https://api.together.xyz/settings/billing",
            status_code=403,
        )


class ImageProviderError(Exception):
    """Unclassified image provider failure.

    Not a LogoServiceError: it is never translated into a specific status
    and surfaces through the catch-all handler.
    """

    def __init__(self, status_code: int | None, body: object):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Image provider request failed (status={status_code}): {body!r}")


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise LogoServiceError subclasses; these handlers catch them
    and return plain text. No inline try/except in endpoints.
    """

    @app.exception_handler(LogoServiceError)
    async def logo_service_error_handler(
        request: Request, exc: LogoServiceError
    ) -> PlainTextResponse:
        logger.info(
            "request_rejected",
            status=exc.status_code,
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_error", error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "type": "UnhandledError"},
        )
