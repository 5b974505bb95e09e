# ─────────────────────────────────────────────────────────────────────────────
# Prompt Templates — logo prompts for FLUX
# ─────────────────────────────────────────────────────────────────────────────


from textwrap import dedent
from types import MappingProxyType

from app.schemas import LogoRequest, LogoStyle

# ── Style lexicon ────────────────────────────────────────────────────────────
# Read-only for the life of the process.

STYLE_LEXICON: MappingProxyType[LogoStyle, str] = MappingProxyType(
    {
        LogoStyle.FLASHY: (
            "Flashy, attention grabbing, bold, futuristic, and eye-catching. "
            "Use vibrant neon colors with metallic, shiny, and glossy accents."
        ),
        LogoStyle.TECH: (
            "highly detailed, sharp focus, cinematic, photorealistic, Minimalist, "
            "clean, sleek, neutral color pallete with subtle accents, clean lines, "
            "shadows, and flat."
        ),
        LogoStyle.MODERN: (
            "modern, forward-thinking, flat design, geometric shapes, clean lines, "
            "natural colors with subtle accents, use strategic negative space to "
            "create visual interest."
        ),
        LogoStyle.PLAYFUL: (
            "playful, lighthearted, bright bold colors, rounded shapes, lively."
        ),
        LogoStyle.ABSTRACT: (
            "abstract, artistic, creative, unique shapes, patterns, and textures "
            "to create a visually interesting and wild logo."
        ),
        LogoStyle.MINIMAL: (
            "minimal, simple, timeless, versatile, single color logo, use negative "
            "space, flat design with minimal details, Light, soft, and subtle."
        ),
    }
)

_TEMPLATE = dedent(
    """\
    Create a professional logo with these EXACT specifications:

    1. COLORS (MUST BE EXACT):
       - Primary Color: {primary}
       - Background Color: {background}
       These hex colors are mandatory and must be used exactly as specified.

    2. STYLE:
       {style}

    3. CONTENT:
       - Company Name: "{company}" (must be included in the logo)
    {details}
    4. REQUIREMENTS:
       - High-quality, award-winning professional design
       - Made for both digital and print media
       - Contains only a few vector shapes
       - Clean and professional appearance
       - STRICT COLOR ADHERENCE: Use the exact hex colors specified above

    The most important requirement is to use the exact hex colors provided. Do not substitute or modify these colors in any way."""  # noqa: E501
)


def build_logo_prompt(request: LogoRequest) -> str:
    """Render the FLUX prompt for a validated logo request.

    Pure function of the request and STYLE_LEXICON. The two colors and the
    company name are inserted verbatim; the additional-details line only
    appears when additional_info is non-empty.

    Args:
        request: The validated request body.

    Returns:
        The complete prompt string.
    """
    details = (
        f"   - Additional Details: {request.additional_info}\n"
        if request.additional_info
        else ""
    )
    return _TEMPLATE.format(
        primary=request.selected_primary_color,
        background=request.selected_background_color,
        style=STYLE_LEXICON[request.selected_style],
        company=request.company_name,
        details=details,
    )
