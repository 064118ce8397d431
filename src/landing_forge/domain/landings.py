"""Domain models for assembled landings."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from landing_forge.domain.analysis import LandingAnalysis
from landing_forge.domain.sessions import AssetRecord


@dataclass(frozen=True)
class AssemblyRequest:
    """Everything the assembler needs to package one landing."""

    session_id: str
    owner_id: int
    markup: str
    assets: dict[str, AssetRecord] = field(default_factory=dict)
    sounds: dict[str, str] = field(default_factory=dict)
    analysis: LandingAnalysis | None = None


class MetadataAnalysis(BaseModel):
    """Analysis highlights stored alongside a landing."""

    model_config = ConfigDict(populate_by_name=True)

    mechanic_name: str | None = Field(default=None, alias="mechanicName")
    mechanic_type: str | None = Field(default=None, alias="mechanicType")
    language: str | None = None
    prizes: list[str] | None = None


class LandingMetadata(BaseModel):
    """Contents of ``metadata.json``."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    owner_id: int = Field(alias="ownerId")
    created_at: datetime = Field(alias="createdAt")
    analysis: MetadataAnalysis
    asset_keys: list[str] = Field(alias="assetKeys")
    sound_keys: list[str] = Field(alias="soundKeys")


@dataclass(frozen=True)
class AssemblyResult:
    """Locations produced by a finished assembly."""

    archive_location: Path
    preview_location: Path
    landing_dir: Path
    metadata: LandingMetadata


@dataclass(frozen=True)
class StoredLanding:
    """A landing found on disk."""

    metadata: LandingMetadata
    landing_dir: Path
    archive_path: Path | None
    markup_path: Path | None
