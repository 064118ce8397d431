"""Landing generation pipeline."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from landing_forge.domain.analysis import DEFAULT_PALETTE, LandingAnalysis, Palette
from landing_forge.domain.landings import AssemblyRequest
from landing_forge.domain.mechanics import AssetDescriptor
from landing_forge.domain.sessions import (
    AssetRecord,
    GeneratedImage,
    GenerationResult,
    GenerationState,
    LandingRequest,
)
from landing_forge.errors import GenerationError, InsufficientAssetsError
from landing_forge.services.asset_planner import build_asset_prompt, get_asset_plan
from landing_forge.services.assembler import LandingAssembler
from landing_forge.services.collaborators import (
    Analyzer,
    BackgroundRemover,
    CodeGenerator,
    ImageDownloader,
    ImageGenerator,
    PaletteExtractor,
    ReferenceFinder,
)
from landing_forge.services.paths import sanitize_join
from landing_forge.services.sessions import GenerationSession

_MIME_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}

_logger = logging.getLogger(__name__)


@dataclass
class LandingOrchestrator:
    """Drives a session through analysis, asset and code generation, assembly.

    Analysis, code generation and assembly failures are fatal. Reference
    lookup, palette extraction and individual image or background removal
    failures degrade the result instead of aborting it.
    """

    analyzer: Analyzer
    reference_finder: ReferenceFinder | None
    palette_extractor: PaletteExtractor | None
    image_generator: ImageGenerator
    background_remover: BackgroundRemover | None
    code_generator: CodeGenerator
    assembler: LandingAssembler
    storage_path: Path
    min_successful_assets: int = 2
    image_downloader: ImageDownloader | None = None

    async def run(
        self, session: GenerationSession, request: LandingRequest
    ) -> GenerationResult:
        """Run every phase and return the packaged landing."""
        try:
            return await self._run(session, request)
        except Exception as exc:
            _logger.exception("Landing generation failed: session=%s", session.id)
            if not session.is_terminal:
                session.set_state(GenerationState.ERROR, error=str(exc) or repr(exc))
            if isinstance(exc, GenerationError):
                raise
            raise GenerationError(str(exc) or repr(exc)) from exc

    async def _run(
        self, session: GenerationSession, request: LandingRequest
    ) -> GenerationResult:
        analysis = await self._analyze(session, request)
        await self._fetch_reference(session, analysis)
        palette = await self._extract_palette(session)
        await self._generate_assets(session, analysis, palette)
        await self._remove_backgrounds(session)
        markup = await self._generate_code(session, analysis, palette)

        session.set_state(
            GenerationState.ASSEMBLING, progress=90, message="Packaging ZIP archive..."
        )
        result = await self.assembler.assemble(
            AssemblyRequest(
                session_id=session.id,
                owner_id=session.owner_id,
                markup=markup,
                assets=dict(session.assets),
                sounds=dict(session.sounds),
                analysis=analysis,
            )
        )
        session.archive_location = str(result.archive_location)
        session.preview_location = str(result.preview_location)
        session.set_state(
            GenerationState.COMPLETE,
            progress=100,
            message="Landing is ready to download",
        )
        return GenerationResult(
            session_id=session.id,
            archive_location=session.archive_location,
            preview_location=session.preview_location,
            analysis=analysis,
            palette=palette,
        )

    async def _analyze(
        self, session: GenerationSession, request: LandingRequest
    ) -> LandingAnalysis:
        session.set_state(GenerationState.ANALYZING, progress=5)
        analysis = await self.analyzer.analyze(request.prompt, request.reference_image)

        overrides: dict[str, object] = {}
        if request.prizes:
            overrides["prizes"] = list(request.prizes)
        if request.offer_url:
            overrides["offer_url"] = request.offer_url
        if request.language:
            overrides["language"] = request.language
        if overrides:
            analysis = analysis.model_copy(update=overrides)
        session.analysis = analysis
        _logger.info(
            "Analysis complete: session=%s slot=%s mechanic=%s",
            session.id,
            analysis.slot_name,
            analysis.mechanic_type.value,
        )

        if analysis.thinking:
            session.set_state(
                GenerationState.ANALYZING,
                progress=8,
                message=f"Thinking: {analysis.thinking[:150]}...",
            )
        session.set_state(
            GenerationState.ANALYZING,
            progress=10,
            message=(
                f"Analysis complete: {analysis.slot_name or 'Custom'} -> "
                f"{analysis.mechanic_type.value}"
            ),
        )
        return analysis

    async def _fetch_reference(
        self, session: GenerationSession, analysis: LandingAnalysis
    ) -> None:
        if not (analysis.is_real_slot and analysis.slot_name):
            return
        if self.reference_finder is None:
            _logger.info("Reference lookup not configured, skipping")
            return

        session.set_state(
            GenerationState.FETCHING_REFERENCE,
            progress=15,
            message=f"Looking for {analysis.slot_name} references...",
        )
        try:
            reference = await self.reference_finder.find(analysis.slot_name)
        except Exception as exc:
            _logger.warning(
                "Reference fetch failed, continuing without: session=%s error=%s",
                session.id,
                exc,
            )
            session.set_state(
                GenerationState.FETCHING_REFERENCE,
                progress=20,
                message="No reference found, using defaults",
            )
            return

        session.reference_image = reference
        _logger.info(
            "Reference image fetched: session=%s source=%s",
            session.id,
            reference.source_url,
        )
        session.set_state(
            GenerationState.FETCHING_REFERENCE,
            progress=20,
            message=f"Reference found: {reference.provider or 'unknown'}",
        )

    async def _extract_palette(self, session: GenerationSession) -> Palette:
        session.set_state(GenerationState.EXTRACTING_PALETTE, progress=25)
        palette = DEFAULT_PALETTE
        if session.reference_image is not None and self.palette_extractor is not None:
            try:
                palette = await self.palette_extractor.extract(
                    session.reference_image.image_bytes
                )
            except Exception as exc:
                _logger.warning("Palette extraction failed, using defaults: %s", exc)
                palette = DEFAULT_PALETTE
            else:
                session.set_state(
                    GenerationState.EXTRACTING_PALETTE,
                    progress=30,
                    message=f"Palette: {palette.primary}, {palette.accent}",
                )
        session.palette = palette
        return palette

    async def _generate_assets(
        self,
        session: GenerationSession,
        analysis: LandingAnalysis,
        palette: Palette,
    ) -> None:
        session.set_state(GenerationState.GENERATING_ASSETS, progress=35)
        plan = get_asset_plan(analysis.mechanic_type)
        conversation_id = f"landing_{session.id}"
        try:
            await self._generate_plan(
                session, analysis, palette, plan, conversation_id
            )
        finally:
            self.image_generator.forget(conversation_id)

        if len(session.assets) < self.min_successful_assets:
            raise InsufficientAssetsError(
                f"Only {len(session.assets)} of {len(plan)} assets were generated; "
                f"at least {self.min_successful_assets} are required"
            )
        session.set_state(
            GenerationState.GENERATING_ASSETS,
            progress=55,
            message=f"Generated {len(session.assets)} assets",
        )

    async def _generate_plan(  # noqa: PLR0913
        self,
        session: GenerationSession,
        analysis: LandingAnalysis,
        palette: Palette,
        plan: list[AssetDescriptor],
        conversation_id: str,
    ) -> None:
        for index, descriptor in enumerate(plan, start=1):
            session.set_state(
                GenerationState.GENERATING_ASSETS,
                progress=35 + (index * 20) // len(plan),
                message=f"Generating {descriptor.display_name}...",
            )
            try:
                image = await self.image_generator.generate(
                    build_asset_prompt(descriptor, analysis, palette),
                    conversation_id=conversation_id,
                    width=descriptor.width,
                    height=descriptor.height,
                )
                session.assets[descriptor.key] = await self._store_asset(
                    session.id, descriptor, image
                )
            except Exception as exc:
                _logger.warning(
                    "Asset generation failed: session=%s asset=%s error=%s",
                    session.id,
                    descriptor.key,
                    exc,
                )
                continue
            _logger.info("Asset generated: session=%s asset=%s", session.id, descriptor.key)

    async def _store_asset(
        self, session_id: str, descriptor: AssetDescriptor, image: GeneratedImage
    ) -> AssetRecord:
        """Persist an image locally; URL-only results are downloaded first."""
        if not image.image_bytes:
            if not image.image_url:
                raise GenerationError(f"Generator returned no image for {descriptor.key}")
            if self.image_downloader is None:
                raise GenerationError(
                    f"Cannot download {descriptor.key}: no image downloader configured"
                )
            image = await self.image_downloader.download(image.image_url)
            if not image.image_bytes:
                raise GenerationError(f"Downloaded image for {descriptor.key} is empty")

        directory = sanitize_join(Path(self.storage_path) / "generated", session_id)
        if directory is None:
            raise GenerationError("Invalid session id for asset storage")
        extension = _MIME_EXTENSIONS.get(image.mime_type, ".png")
        target = directory / f"{descriptor.key}{extension}"
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_bytes, image.image_bytes)
        return AssetRecord(
            key=descriptor.key,
            location=str(target),
            needs_transparency=descriptor.needs_transparency,
            width=descriptor.width,
            height=descriptor.height,
        )

    async def _remove_backgrounds(self, session: GenerationSession) -> None:
        session.set_state(
            GenerationState.REMOVING_BACKGROUNDS,
            progress=60,
            message="Removing backgrounds from elements...",
        )
        if self.background_remover is None:
            _logger.info("Background removal not configured, keeping originals")
            return
        for key, asset in session.assets.items():
            path = Path(asset.location)
            if not asset.needs_transparency or not path.is_absolute():
                continue
            try:
                original = await asyncio.to_thread(path.read_bytes)
                transparent = await self.background_remover.remove(original)
                await asyncio.to_thread(path.write_bytes, transparent)
            except Exception as exc:
                _logger.warning(
                    "Background removal failed, keeping original: asset=%s error=%s",
                    key,
                    exc,
                )
                continue
            _logger.info("Background removed: session=%s asset=%s", session.id, key)

    async def _generate_code(
        self,
        session: GenerationSession,
        analysis: LandingAnalysis,
        palette: Palette,
    ) -> str:
        session.set_state(GenerationState.GENERATING_CODE, progress=70)
        asset_map = {
            key: f"assets/{key}{Path(asset.location).suffix or '.png'}"
            for key, asset in session.assets.items()
        }
        markup = await self.code_generator.generate(analysis, asset_map, palette)
        session.markup = markup
        session.set_state(
            GenerationState.GENERATING_CODE,
            progress=85,
            message=f"HTML ready ({round(len(markup) / 1024)}KB)",
        )
        return markup
