"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from landing_forge.adapters.image_downloader import HttpxImageDownloader
from landing_forge.adapters.openai_client import (
    OpenAIImageGenerator,
    OpenAIResponsesClient,
)
from landing_forge.adapters.runware_client import HttpxRunwareBackgroundRemover
from landing_forge.adapters.serper_client import HttpxSerperReferenceFinder
from landing_forge.config import Settings
from landing_forge.services.assembler import LandingAssembler
from landing_forge.services.llm import (
    AnalysisService,
    CodeGenerationService,
    PaletteService,
)
from landing_forge.services.orchestrator import LandingOrchestrator
from landing_forge.services.sessions import SessionRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_registry: SessionRegistry
    orchestrator: LandingOrchestrator
    assembler: LandingAssembler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    storage_path = Path(resolved_settings.storage_path)
    llm_client = OpenAIResponsesClient.create(resolved_settings.openai_api_key)
    image_generator = OpenAIImageGenerator.create(
        api_key=resolved_settings.openai_api_key,
        model=resolved_settings.openai_model,
        image_model=resolved_settings.openai_image_model,
    )
    reference_finder = (
        HttpxSerperReferenceFinder.create(
            api_key=resolved_settings.serper_api_key,
            base_url=resolved_settings.serper_base_url,
        )
        if resolved_settings.serper_api_key
        else None
    )
    background_remover = (
        HttpxRunwareBackgroundRemover.create(
            api_key=resolved_settings.runware_api_key,
            base_url=resolved_settings.runware_base_url,
        )
        if resolved_settings.runware_api_key
        else None
    )
    image_downloader = HttpxImageDownloader.create(
        timeout=resolved_settings.image_download_timeout_seconds
    )
    assembler = LandingAssembler(
        storage_path=storage_path,
        default_sounds_dir=Path(resolved_settings.default_sounds_dir),
    )
    orchestrator = LandingOrchestrator(
        analyzer=AnalysisService(
            client=llm_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
        ),
        reference_finder=reference_finder,
        palette_extractor=PaletteService(
            client=llm_client, model=resolved_settings.openai_model
        ),
        image_generator=image_generator,
        background_remover=background_remover,
        code_generator=CodeGenerationService(
            client=llm_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
        ),
        assembler=assembler,
        storage_path=storage_path,
        min_successful_assets=resolved_settings.min_successful_assets,
        image_downloader=image_downloader,
    )
    session_registry = SessionRegistry(
        ttl_seconds=resolved_settings.session_ttl_seconds,
        max_sessions_per_owner=resolved_settings.max_sessions_per_owner,
    )

    async def close_resources() -> None:
        if reference_finder is not None:
            await reference_finder.close()
        if background_remover is not None:
            await background_remover.close()
        await image_downloader.close()
        await llm_client.client.close()
        await image_generator.client.close()

    return AppContainer(
        settings=resolved_settings,
        session_registry=session_registry,
        orchestrator=orchestrator,
        assembler=assembler,
        close_resources=close_resources,
    )
