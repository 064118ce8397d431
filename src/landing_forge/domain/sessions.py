"""Domain models for generation sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from landing_forge.domain.analysis import LandingAnalysis, Palette


class GenerationState(str, Enum):
    """Pipeline states in happy-path order, plus ERROR."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    FETCHING_REFERENCE = "fetching_reference"
    EXTRACTING_PALETTE = "extracting_palette"
    GENERATING_ASSETS = "generating_assets"
    REMOVING_BACKGROUNDS = "removing_backgrounds"
    GENERATING_CODE = "generating_code"
    ASSEMBLING = "assembling"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in {GenerationState.COMPLETE, GenerationState.ERROR}


STATE_ORDER: tuple[GenerationState, ...] = (
    GenerationState.IDLE,
    GenerationState.ANALYZING,
    GenerationState.FETCHING_REFERENCE,
    GenerationState.EXTRACTING_PALETTE,
    GenerationState.GENERATING_ASSETS,
    GenerationState.REMOVING_BACKGROUNDS,
    GenerationState.GENERATING_CODE,
    GenerationState.ASSEMBLING,
    GenerationState.COMPLETE,
)


@dataclass(frozen=True)
class SessionEvent:
    """State change notification published by a session."""

    session_id: str
    state: GenerationState
    progress: int
    message: str
    timestamp: datetime
    analysis: LandingAnalysis | None = None

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-friendly representation."""
        return {
            "sessionId": self.session_id,
            "state": self.state.value,
            "progress": self.progress,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "analysis": (
                self.analysis.model_dump(mode="json") if self.analysis else None
            ),
        }


@dataclass
class AssetRecord:
    """A generated image stored for a session."""

    key: str
    location: str
    needs_transparency: bool
    width: int
    height: int


@dataclass(frozen=True)
class ReferenceImage:
    """Reference artwork found for a branded game."""

    image_bytes: bytes
    source_url: str
    provider: str | None = None


@dataclass(frozen=True)
class GeneratedImage:
    """Raw output of one image generation call."""

    image_bytes: bytes | None = None
    image_url: str | None = None
    mime_type: str = "image/png"


@dataclass(frozen=True)
class LandingRequest:
    """Caller input for a generation run."""

    prompt: str
    reference_image: bytes | None = None
    prizes: list[str] | None = None
    offer_url: str | None = None
    language: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a successful generation run."""

    session_id: str
    archive_location: str
    preview_location: str
    analysis: LandingAnalysis
    palette: Palette
