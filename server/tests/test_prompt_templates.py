# ─────────────────────────────────────────────────────────────────────────────
# Tests — Prompt Templates
# ─────────────────────────────────────────────────────────────────────────────

import pytest

from app.pipeline.prompt_templates import STYLE_LEXICON, build_logo_prompt
from app.schemas import LogoRequest, LogoStyle


def _request(**overrides) -> LogoRequest:
    fields = {
        "companyName": "Acme",
        "selectedStyle": "Minimal",
        "selectedPrimaryColor": "#112233",
        "selectedBackgroundColor": "#ffffff",
    }
    fields.update(overrides)
    return LogoRequest.model_validate(fields)


class TestStyleLexicon:
    """Tests for STYLE_LEXICON."""

    def test_has_an_entry_for_every_style(self):
        assert set(STYLE_LEXICON) == set(LogoStyle)
        assert len(STYLE_LEXICON) == 6

    def test_is_read_only(self):
        with pytest.raises(TypeError):
            STYLE_LEXICON[LogoStyle.MINIMAL] = "anything"  # type: ignore[index]


class TestBuildLogoPrompt:
    """Tests for build_logo_prompt()."""

    def test_contains_colors_name_and_style_verbatim(self):
        result = build_logo_prompt(_request())
        assert "#112233" in result
        assert "#ffffff" in result
        assert '"Acme"' in result
        assert STYLE_LEXICON[LogoStyle.MINIMAL] in result

    def test_has_all_sections(self):
        result = build_logo_prompt(_request())
        assert result.startswith("Create a professional logo with these EXACT specifications:")
        assert "1. COLORS (MUST BE EXACT):" in result
        assert "2. STYLE:" in result
        assert "3. CONTENT:" in result
        assert "4. REQUIREMENTS:" in result
        assert result.endswith("Do not substitute or modify these colors in any way.")

    def test_colors_are_labelled(self):
        result = build_logo_prompt(_request())
        assert "- Primary Color: #112233" in result
        assert "- Background Color: #ffffff" in result

    def test_additional_info_included_when_present(self):
        result = build_logo_prompt(_request(additionalInfo="a rocket in the O"))
        assert "- Additional Details: a rocket in the O" in result

    def test_additional_info_omitted_when_absent(self):
        assert "Additional Details" not in build_logo_prompt(_request())

    def test_additional_info_omitted_when_empty(self):
        assert "Additional Details" not in build_logo_prompt(_request(additionalInfo=""))

    def test_company_name_with_braces_is_not_interpolated(self):
        result = build_logo_prompt(_request(companyName="{primary} Labs"))
        assert '"{primary} Labs"' in result

    @pytest.mark.parametrize("style", list(LogoStyle))
    def test_each_style_uses_its_fragment(self, style: LogoStyle):
        result = build_logo_prompt(_request(selectedStyle=style.value))
        assert STYLE_LEXICON[style] in result

    def test_deterministic(self):
        assert build_logo_prompt(_request()) == build_logo_prompt(_request())

    def test_different_styles_produce_different_prompts(self):
        flashy = build_logo_prompt(_request(selectedStyle="Flashy"))
        tech = build_logo_prompt(_request(selectedStyle="Tech"))
        assert flashy != tech
