"""Landing assembly: sandboxed files, rewritten markup and ZIP packaging."""

import asyncio
import logging
import os
import shutil
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from landing_forge.domain.analysis import LandingAnalysis
from landing_forge.domain.landings import (
    AssemblyRequest,
    AssemblyResult,
    LandingMetadata,
    MetadataAnalysis,
    StoredLanding,
)
from landing_forge.domain.sessions import AssetRecord
from landing_forge.errors import (
    AssemblyError,
    AssemblyInProgressError,
    AssemblyValidationError,
)
from landing_forge.services.markup import (
    rewrite_asset_references,
    rewrite_sound_references,
)
from landing_forge.services.paths import is_valid_id, is_valid_owner_id, sanitize_join

DEFAULT_SOUND_KEYS = ("spin", "win")
ARCHIVE_MEMBERS = ("index.html", "assets", "sounds")

_logger = logging.getLogger(__name__)


@dataclass
class AssemblyLocks:
    """Non-blocking per-key locks; a held key is refused, never queued."""

    _held: set[str] = field(default_factory=set)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold ``key`` for the duration of the block."""
        if key in self._held:
            raise AssemblyInProgressError(f"Assembly already in progress for {key}")
        self._held.add(key)
        try:
            yield
        finally:
            self._held.discard(key)

    def is_held(self, key: str) -> bool:
        """Return True while an assembly holds ``key``."""
        return key in self._held


@dataclass
class LandingAssembler:
    """Writes generated landings to storage and packages them."""

    storage_path: Path
    default_sounds_dir: Path
    locks: AssemblyLocks = field(default_factory=AssemblyLocks)

    @property
    def landings_root(self) -> Path:
        return Path(self.storage_path) / "landings"

    async def assemble(self, request: AssemblyRequest) -> AssemblyResult:
        """Materialize a landing and return its archive location."""
        if not is_valid_id(request.session_id):
            raise AssemblyValidationError("Invalid session id format")
        if not is_valid_owner_id(request.owner_id):
            raise AssemblyValidationError("Invalid owner id format")
        if not isinstance(request.markup, str) or not request.markup.strip():
            raise AssemblyValidationError("Invalid markup content")

        lock_key = f"{request.owner_id}:{request.session_id}"
        with self.locks.hold(lock_key):
            try:
                return await self._assemble(request)
            except OSError as exc:
                _logger.exception(
                    "Assembly failed: owner=%s session=%s",
                    request.owner_id,
                    request.session_id,
                )
                raise AssemblyError(f"Failed to write landing: {exc}") from exc

    async def _assemble(self, request: AssemblyRequest) -> AssemblyResult:
        landing_dir = self._landing_dir(request.owner_id, request.session_id)
        if landing_dir is None:
            raise AssemblyValidationError("Invalid landing directory path")

        assets_dir = landing_dir / "assets"
        sounds_dir = landing_dir / "sounds"
        # Reassembly replaces the previous run's files.
        for directory in (assets_dir, sounds_dir):
            if directory.is_dir():
                await asyncio.to_thread(shutil.rmtree, directory)
        await asyncio.to_thread(assets_dir.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(sounds_dir.mkdir, parents=True, exist_ok=True)
        _logger.info(
            "Assembling landing: session=%s dir=%s assets=%s",
            request.session_id,
            landing_dir,
            len(request.assets),
        )

        asset_paths = await self._copy_assets(request.assets, assets_dir)
        sound_paths = await self._copy_sounds(request.sounds, sounds_dir)

        markup = rewrite_asset_references(request.markup, asset_paths)
        markup = rewrite_sound_references(markup, sound_paths)
        await asyncio.to_thread(
            (landing_dir / "index.html").write_text, markup, encoding="utf-8"
        )

        metadata = _build_metadata(request, asset_paths, sound_paths)
        await asyncio.to_thread(
            (landing_dir / "metadata.json").write_text,
            metadata.model_dump_json(by_alias=True, indent=2),
            encoding="utf-8",
        )

        archive_path = landing_dir / f"{request.session_id}.zip"
        await asyncio.to_thread(write_archive, landing_dir, archive_path)
        _logger.info("Landing archive created: %s", archive_path)

        return AssemblyResult(
            archive_location=archive_path,
            preview_location=landing_dir / "preview.png",
            landing_dir=landing_dir,
            metadata=metadata,
        )

    async def _copy_assets(
        self, assets: dict[str, AssetRecord], assets_dir: Path
    ) -> dict[str, str]:
        copied: dict[str, str] = {}
        for key, asset in assets.items():
            source = self._resolve_asset_source(asset.location)
            if source is None:
                _logger.warning("Asset has no local source: key=%s", key)
                continue
            file_name = f"{key}{source.suffix or '.png'}"
            target = sanitize_join(assets_dir, file_name)
            if target is None:
                continue
            try:
                await asyncio.to_thread(shutil.copyfile, source, target)
            except OSError as exc:
                _logger.warning("Failed to copy asset: key=%s error=%s", key, exc)
                continue
            copied[key] = f"assets/{file_name}"
        return copied

    async def _copy_sounds(
        self, sounds: dict[str, str], sounds_dir: Path
    ) -> dict[str, str]:
        defaults = self.default_sounds()
        selected = sounds or {key: str(path) for key, path in defaults.items()}
        copied: dict[str, str] = {}
        for key, sound in selected.items():
            if not sound:
                continue
            file_name = f"{key}.mp3"
            target = sanitize_join(sounds_dir, file_name)
            if target is None:
                continue
            candidates = [Path(sound)]
            if not candidates[0].is_absolute():
                candidates[0] = Path(self.default_sounds_dir) / sound
            fallback = defaults.get(key)
            if fallback is not None and fallback != candidates[0]:
                candidates.append(fallback)
            for source in candidates:
                try:
                    await asyncio.to_thread(shutil.copyfile, source, target)
                except OSError as exc:
                    _logger.debug("Sound source unavailable: key=%s error=%s", key, exc)
                    continue
                copied[key] = f"sounds/{file_name}"
                break
            else:
                _logger.warning("Sound not found, skipping: key=%s", key)
        return copied

    def default_sounds(self) -> dict[str, Path]:
        """Return the bundled fallback sounds."""
        base = Path(self.default_sounds_dir)
        return {key: base / f"{key}.mp3" for key in DEFAULT_SOUND_KEYS}

    def _resolve_asset_source(self, location: str) -> Path | None:
        if not location or location.startswith(("http://", "https://")):
            return None
        if location.startswith("/uploads/"):
            return sanitize_join(self.storage_path, location.removeprefix("/uploads/"))
        path = Path(location)
        if path.is_absolute():
            return path
        return sanitize_join(self.storage_path, location)

    def _landing_dir(self, owner_id: int, session_id: str) -> Path | None:
        owner_dir = sanitize_join(self.landings_root, str(owner_id))
        if owner_dir is None:
            return None
        return sanitize_join(owner_dir, session_id)

    def _checked_landing_dir(self, session_id: str, owner_id: int) -> Path | None:
        if not is_valid_id(session_id) or not is_valid_owner_id(owner_id):
            return None
        return self._landing_dir(owner_id, session_id)

    async def get_landing(self, session_id: str, owner_id: int) -> StoredLanding | None:
        """Return a stored landing, if present."""
        landing_dir = self._checked_landing_dir(session_id, owner_id)
        if landing_dir is None:
            return None
        return await asyncio.to_thread(_read_landing, landing_dir, session_id)

    async def list_landings(self, owner_id: int) -> list[StoredLanding]:
        """Return the owner's stored landings, newest first."""
        if not is_valid_owner_id(owner_id):
            return []
        owner_dir = sanitize_join(self.landings_root, str(owner_id))
        if owner_dir is None or not owner_dir.is_dir():
            return []
        landings = []
        for entry in sorted(owner_dir.iterdir()):
            if entry.is_dir() and is_valid_id(entry.name):
                landing = await self.get_landing(entry.name, owner_id)
                if landing is not None:
                    landings.append(landing)
        landings.sort(key=lambda landing: landing.metadata.created_at, reverse=True)
        return landings

    async def get_landing_markup(self, session_id: str, owner_id: int) -> str | None:
        """Return the stored ``index.html``, if present."""
        landing_dir = self._checked_landing_dir(session_id, owner_id)
        if landing_dir is None:
            return None
        try:
            return await asyncio.to_thread(
                (landing_dir / "index.html").read_text, encoding="utf-8"
            )
        except OSError:
            return None

    def get_archive_path(self, session_id: str, owner_id: int) -> Path | None:
        """Return the ZIP path when the archive exists."""
        landing_dir = self._checked_landing_dir(session_id, owner_id)
        if landing_dir is None:
            return None
        archive = landing_dir / f"{session_id}.zip"
        return archive if archive.is_file() else None

    async def delete_landing(self, session_id: str, owner_id: int) -> bool:
        """Remove a stored landing directory."""
        landing_dir = self._checked_landing_dir(session_id, owner_id)
        if landing_dir is None or not landing_dir.is_dir():
            return False
        if self.locks.is_held(f"{owner_id}:{session_id}"):
            raise AssemblyInProgressError("Cannot delete a landing being assembled")
        try:
            await asyncio.to_thread(shutil.rmtree, landing_dir)
        except OSError:
            _logger.exception("Failed to delete landing: session=%s", session_id)
            return False
        _logger.info("Landing deleted: session=%s owner=%s", session_id, owner_id)
        return True


def write_archive(landing_dir: Path, archive_path: Path) -> None:
    """Write index.html, assets/ and sounds/ into a ZIP next to them.

    The archive is streamed to a temporary file and renamed once complete, so a
    failed write never leaves a truncated archive behind.
    """
    partial_path = archive_path.with_name(archive_path.name + ".partial")
    try:
        with zipfile.ZipFile(
            partial_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9
        ) as archive:
            for member in ARCHIVE_MEMBERS:
                source = landing_dir / member
                if source.is_file():
                    archive.write(source, member)
                elif source.is_dir():
                    for path in sorted(source.rglob("*")):
                        if path.is_file():
                            archive.write(path, path.relative_to(landing_dir).as_posix())
                else:
                    _logger.debug("Archive member missing, skipping: %s", member)
        os.replace(partial_path, archive_path)
    except BaseException:
        partial_path.unlink(missing_ok=True)
        raise


def _build_metadata(
    request: AssemblyRequest,
    asset_paths: dict[str, str],
    sound_paths: dict[str, str],
) -> LandingMetadata:
    analysis: LandingAnalysis | None = request.analysis
    return LandingMetadata(
        session_id=request.session_id,
        owner_id=request.owner_id,
        created_at=datetime.now(tz=UTC),
        analysis=MetadataAnalysis(
            mechanic_name=analysis.slot_name if analysis else None,
            mechanic_type=analysis.mechanic_type.value if analysis else None,
            language=analysis.language if analysis else None,
            prizes=(analysis.prizes or None) if analysis else None,
        ),
        asset_keys=list(asset_paths),
        sound_keys=list(sound_paths),
    )


def _read_landing(landing_dir: Path, session_id: str) -> StoredLanding | None:
    try:
        raw = (landing_dir / "metadata.json").read_text(encoding="utf-8")
        metadata = LandingMetadata.model_validate_json(raw)
    except (OSError, ValidationError):
        return None
    archive_path = landing_dir / f"{session_id}.zip"
    markup_path = landing_dir / "index.html"
    return StoredLanding(
        metadata=metadata,
        landing_dir=landing_dir,
        archive_path=archive_path if archive_path.is_file() else None,
        markup_path=markup_path if markup_path.is_file() else None,
    )
