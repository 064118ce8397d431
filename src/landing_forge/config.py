"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MAX_OWNER_ID = 2**53 - 1


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    storage_path: str = "./uploads"
    default_sounds_dir: str = "./assets/sounds"
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_image_model: str = "gpt-image-1"
    openai_reasoning_effort: str = "medium"
    serper_api_key: str | None = None
    serper_base_url: str = "https://google.serper.dev"
    runware_api_key: str | None = None
    runware_base_url: str = "https://api.runware.ai/v1"
    session_ttl_seconds: int = 2 * 60 * 60
    max_sessions_per_owner: int = 10
    min_successful_assets: int = 2
    image_download_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_owner_id(raw: str | None) -> int | None:
    """Parse an owner id from a header value."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if not (cleaned.isascii() and cleaned.isdigit()):
        return None
    value = int(cleaned)
    if 0 < value < MAX_OWNER_ID:
        return value
    return None
