"""Models for request analysis and colour palettes."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from landing_forge.domain.mechanics import MechanicType

_HEX_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class LandingAnalysis(BaseModel):
    """Structured interpretation of a landing request."""

    model_config = ConfigDict(extra="ignore")

    mechanic_type: MechanicType = MechanicType.WHEEL
    slot_name: str | None = None
    is_real_slot: bool = False
    theme: str | None = None
    style: str | None = None
    palette_hint: str | None = None
    prizes: list[str] = Field(default_factory=list)
    language: str = "en"
    offer_url: str | None = None
    sounds_needed: list[str] = Field(default_factory=list)
    confidence: int | None = Field(default=None, ge=0, le=100)
    thinking: str | None = None

    @field_validator("mechanic_type", mode="before")
    @classmethod
    def _fallback_mechanic(cls, value: object) -> object:
        if isinstance(value, str):
            try:
                return MechanicType(value.strip().lower())
            except ValueError:
                return MechanicType.WHEEL
        return value


class Palette(BaseModel):
    """Hex colour palette used for prompts and generated code."""

    primary: str = Field(pattern=_HEX_PATTERN)
    secondary: str = Field(pattern=_HEX_PATTERN)
    accent: str = Field(pattern=_HEX_PATTERN)
    background: str = Field(pattern=_HEX_PATTERN)
    muted: str = Field(pattern=_HEX_PATTERN)
    light: str = Field(pattern=_HEX_PATTERN)


DEFAULT_PALETTE = Palette(
    primary="#FFD700",
    secondary="#1E3A5F",
    accent="#FF6B6B",
    background="#0D1117",
    muted="#6B7280",
    light="#F3F4F6",
)
