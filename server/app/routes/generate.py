# ─────────────────────────────────────────────────────────────────────────────
# POST /api/generate-logo — logo generation endpoint (THIN)
# ─────────────────────────────────────────────────────────────────────────────
# The body is parsed after the auth dependency resolves, so an anonymous
# caller gets 404 no matter what it sends.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.auth import CurrentUser, require_user
from app.dependencies import get_logo_pipeline
from app.schemas import LogoRequest
from app.services.pipeline import LogoPipeline

router = APIRouter()


async def read_logo_request(request: Request) -> LogoRequest:
    """Parse and validate the JSON body. All-or-nothing; 422 on any error."""
    raw = await request.body()
    try:
        return LogoRequest.model_validate_json(raw)
    except ValidationError as exc:
        # Raw input may be undecodable bytes, which the 422 handler cannot encode
        raise RequestValidationError(
            exc.errors(include_url=False, include_input=False)
        ) from exc


def _request_body_schema() -> dict:
    """LogoRequest JSON schema with $defs inlined, so no $ref dangles in OpenAPI."""
    schema = LogoRequest.model_json_schema(by_alias=True)
    defs = schema.pop("$defs", {})
    for prop in schema["properties"].values():
        ref = prop.pop("$ref", None)
        if ref is not None:
            prop.update(defs[ref.rsplit("/", 1)[-1]])
    return schema


# The body is read by hand, so its schema is declared for the OpenAPI docs
_LOGO_REQUEST_BODY = {
    "requestBody": {
        "content": {"application/json": {"schema": _request_body_schema()}},
        "required": True,
    }
}


@router.post("/api/generate-logo", openapi_extra=_LOGO_REQUEST_BODY)
async def generate_logo(
    request: Request,
    user: CurrentUser = Depends(require_user),
    pipeline: LogoPipeline = Depends(get_logo_pipeline),
) -> JSONResponse:
    """Generate a logo image for the authenticated caller.

    Validation is Pydantic. Errors are exceptions. Logic is in the pipeline.
    This endpoint is just wiring.
    """
    body = await read_logo_request(request)
    image = await pipeline.generate(user, body)
    return JSONResponse(image, status_code=200)
