"""LLM-backed analysis, palette extraction and code generation."""

import base64
import json
import re
from dataclasses import dataclass
from typing import Protocol

from landing_forge.domain.analysis import LandingAnalysis, Palette
from landing_forge.domain.mechanics import MechanicType

_NULLABLE_STRING = {"anyOf": [{"type": "string"}, {"type": "null"}]}
_HEX_COLOR = {"type": "string", "pattern": "^#[0-9A-Fa-f]{6}$"}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "mechanic_type": {
            "type": "string",
            "enum": [mechanic.value for mechanic in MechanicType],
        },
        "slot_name": _NULLABLE_STRING,
        "is_real_slot": {"type": "boolean"},
        "theme": _NULLABLE_STRING,
        "style": _NULLABLE_STRING,
        "palette_hint": _NULLABLE_STRING,
        "prizes": {"type": "array", "items": {"type": "string"}},
        "language": {"type": "string"},
        "offer_url": _NULLABLE_STRING,
        "sounds_needed": {"type": "array", "items": {"type": "string"}},
        "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
        "thinking": _NULLABLE_STRING,
    },
    "required": [
        "mechanic_type",
        "slot_name",
        "is_real_slot",
        "theme",
        "style",
        "palette_hint",
        "prizes",
        "language",
        "offer_url",
        "sounds_needed",
        "confidence",
        "thinking",
    ],
    "additionalProperties": False,
}

PALETTE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        name: _HEX_COLOR
        for name in ("primary", "secondary", "accent", "background", "muted", "light")
    },
    "required": ["primary", "secondary", "accent", "background", "muted", "light"],
    "additionalProperties": False,
}

ANALYSIS_INSTRUCTIONS = (
    "You design promotional landing pages with a small casino-style game. "
    "Read the request and describe the landing: which game mechanic fits, "
    "whether it references a real slot game and its name, the visual theme and "
    "art style, a short palette hint, the prizes, the language code, the offer "
    "URL if present, which sounds are needed, your confidence from 0 to 100 "
    "and one or two sentences of reasoning as thinking."
)

PALETTE_PROMPT = (
    "Extract the colour palette of this artwork as hex colours: the most vibrant "
    "colour as primary, a dark vibrant colour as secondary, a light vibrant "
    "colour as accent, a dark muted colour as background, a muted colour and a "
    "light muted colour."
)

CODE_INSTRUCTIONS = (
    "You write single-file HTML landing pages with inline CSS and JavaScript. "
    "Reference images only through the asset paths you are given and sounds "
    "through new Audio('sounds/<name>.mp3'). Put game settings in a CONFIG "
    "object. Return ONLY the HTML code, no explanations or markdown."
)

_CODE_FENCE_START = re.compile(r"^```(?:html?)?\s*\n?", re.IGNORECASE)
_CODE_FENCE_END = re.compile(r"\n?```\s*$")


class LlmClient(Protocol):
    """Interface for text and structured LLM calls."""

    async def structured(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        instructions: str | None,
        prompt: str,
        schema: dict[str, object],
        schema_name: str,
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return a JSON object matching the schema."""

    async def complete(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        instructions: str,
        prompt: str,
    ) -> str:
        """Return plain text output."""


@dataclass
class AnalysisService:
    """Analyzer backed by an LLM with structured output."""

    client: LlmClient
    model: str
    reasoning_effort: str | None = None

    async def analyze(self, prompt: str, image: bytes | None) -> LandingAnalysis:
        """Analyze a landing request and validate the result."""
        raw = await self.client.structured(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            instructions=ANALYSIS_INSTRUCTIONS,
            prompt=prompt,
            schema=ANALYSIS_SCHEMA,
            schema_name="landing_analysis",
            image_data_url=to_data_url(image) if image else None,
        )
        return LandingAnalysis.model_validate(raw)


@dataclass
class PaletteService:
    """Palette extractor that asks a vision model for the dominant colours."""

    client: LlmClient
    model: str

    async def extract(self, image_bytes: bytes) -> Palette:
        """Return the palette of an image."""
        raw = await self.client.structured(
            model=self.model,
            reasoning_effort=None,
            instructions=None,
            prompt=PALETTE_PROMPT,
            schema=PALETTE_SCHEMA,
            schema_name="palette",
            image_data_url=to_data_url(image_bytes),
        )
        return Palette.model_validate(raw)


@dataclass
class CodeGenerationService:
    """Code generator producing the landing HTML."""

    client: LlmClient
    model: str
    reasoning_effort: str | None = None

    async def generate(
        self,
        analysis: LandingAnalysis,
        asset_map: dict[str, str],
        palette: Palette,
    ) -> str:
        """Generate the landing markup and strip markdown fences."""
        output = await self.client.complete(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            instructions=CODE_INSTRUCTIONS,
            prompt=build_code_prompt(analysis, asset_map, palette),
        )
        html = strip_code_fences(output)
        if not html:
            raise RuntimeError("Code generation returned an empty document")
        return html


def build_code_prompt(
    analysis: LandingAnalysis, asset_map: dict[str, str], palette: Palette
) -> str:
    """Describe the landing to build for the code model."""
    details = analysis.model_dump(mode="json", exclude={"thinking"})
    return "\n\n".join(
        [
            f"Build a {analysis.mechanic_type.value} mechanic landing page.",
            f"Details:\n{json.dumps(details, indent=2, ensure_ascii=False)}",
            f"Assets (use these exact paths):\n{json.dumps(asset_map, indent=2)}",
            f"Palette:\n{palette.model_dump_json(indent=2)}",
        ]
    )


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    cleaned = _CODE_FENCE_START.sub("", text.strip())
    return _CODE_FENCE_END.sub("", cleaned).strip()


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
