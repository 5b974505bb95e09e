# ─────────────────────────────────────────────────────────────────────────────
# Request / Response Schemas
# ─────────────────────────────────────────────────────────────────────────────
# The web client posts camelCase JSON; fields are snake_case in Python and
# mapped through aliases.
# ─────────────────────────────────────────────────────────────────────────────


from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LogoStyle(str, Enum):
    """Styles offered by the client. Each maps to a style lexicon entry."""

    FLASHY = "Flashy"
    TECH = "Tech"
    MODERN = "Modern"
    PLAYFUL = "Playful"
    ABSTRACT = "Abstract"
    MINIMAL = "Minimal"


class LogoRequest(BaseModel):
    """Body of POST /api/generate-logo."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_api_key: str | None = Field(default=None, alias="userAPIKey")
    company_name: str = Field(alias="companyName", min_length=1)
    selected_style: LogoStyle = Field(alias="selectedStyle")
    selected_primary_color: str = Field(alias="selectedPrimaryColor")
    selected_background_color: str = Field(alias="selectedBackgroundColor")
    additional_info: str | None = Field(default=None, alias="additionalInfo")

    @property
    def byok_key(self) -> str | None:
        """The caller's own Together key, or None. Empty string counts as absent."""
        return self.user_api_key or None


class PromptPreviewResponse(BaseModel):
    """Debug-only rendering of the prompt for a request."""

    prompt: str
    style: LogoStyle


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    image_credential_configured: bool
    quota_enforcement: bool
    quota_store_connected: bool | None = None
    observability: bool
