# ─────────────────────────────────────────────────────────────────────────────
# Debug Routes — prompt inspection
# ─────────────────────────────────────────────────────────────────────────────
# Only mounted when settings.enable_debug_routes is True. Nothing here calls
# the image provider or touches quotas.
# ─────────────────────────────────────────────────────────────────────────────

from fastapi import APIRouter

from app.pipeline.prompt_templates import STYLE_LEXICON, build_logo_prompt
from app.schemas import LogoRequest, PromptPreviewResponse

router = APIRouter()


@router.get("/styles")
async def list_styles() -> dict:
    """List the style lexicon: style name → prompt fragment."""
    return {style.value: fragment for style, fragment in STYLE_LEXICON.items()}


@router.post("/prompt", response_model=PromptPreviewResponse)
async def preview_prompt(request: LogoRequest) -> PromptPreviewResponse:
    """Render the prompt a request would produce, without generating."""
    return PromptPreviewResponse(
        prompt=build_logo_prompt(request),
        style=request.selected_style,
    )
