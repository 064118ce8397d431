"""Request and response bodies for the HTTP API."""

import base64
import binascii

from pydantic import BaseModel, Field, field_validator


class CreateLandingBody(BaseModel):
    """Payload for starting a landing generation."""

    prompt: str = Field(min_length=1, max_length=4000)
    screenshot_base64: str | None = None
    prizes: list[str] | None = None
    offer_url: str | None = None
    language: str | None = Field(default=None, max_length=8)

    @field_validator("screenshot_base64")
    @classmethod
    def _strip_data_url(cls, value: str | None) -> str | None:
        if value and value.startswith("data:") and "," in value:
            return value.split(",", 1)[1]
        return value

    def screenshot_bytes(self) -> bytes | None:
        """Decode the optional screenshot."""
        if not self.screenshot_base64:
            return None
        try:
            return base64.b64decode(self.screenshot_base64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("screenshot_base64 is not valid base64") from exc


class SessionStatus(BaseModel):
    """Current state of a generation session."""

    session_id: str
    state: str
    progress: int
    error: str | None = None
    archive_location: str | None = None
    preview_location: str | None = None
