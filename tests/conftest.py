"""Shared test fixtures."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from landing_forge.config import Settings
from landing_forge.containers import AppContainer
from landing_forge.domain.analysis import LandingAnalysis, Palette
from landing_forge.domain.sessions import GeneratedImage, ReferenceImage
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
from landing_forge.services.llm import LlmClient
from landing_forge.services.orchestrator import LandingOrchestrator
from landing_forge.services.sessions import SessionRegistry

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-png-body"

WHEEL_MARKUP = """<!DOCTYPE html>
<html>
<body style="background: url('assets/background.png')">
  <img src="assets/logo.png">
  <img src="assets/wheel.png">
  <img src="assets/wheelFrame.png">
  <img src="assets/pointer.png">
  <button style="background-image: url('assets/button.png')">SPIN</button>
  <script>
    const CONFIG = { sounds: { spin: 'x', win: 'y' } };
    const spin = new Audio('sounds/spin.mp3');
    const win = new Audio('assets/sounds/win.mp3');
  </script>
</body>
</html>
"""


@dataclass
class FakeAnalyzer(Analyzer):
    """Analyzer returning a fixed analysis or raising."""

    analysis: LandingAnalysis = field(
        default_factory=lambda: LandingAnalysis(
            mechanic_type="wheel",
            slot_name="Gates of Olympus",
            is_real_slot=False,
            theme="greek gods",
            style="cartoon",
            prizes=["100 FS", "200%"],
            language="en",
        )
    )
    error: Exception | None = None
    calls: list[tuple[str, bytes | None]] = field(default_factory=list)

    async def analyze(self, prompt: str, image: bytes | None) -> LandingAnalysis:
        self.calls.append((prompt, image))
        if self.error is not None:
            raise self.error
        return self.analysis


@dataclass
class FakeReferenceFinder(ReferenceFinder):
    """Reference finder returning fixed bytes or raising."""

    error: Exception | None = None
    names: list[str] = field(default_factory=list)

    async def find(self, name: str) -> ReferenceImage:
        self.names.append(name)
        if self.error is not None:
            raise self.error
        return ReferenceImage(
            image_bytes=PNG_BYTES,
            source_url="https://images.test/olympus.png",
            provider="images.test",
        )


@dataclass
class FakePaletteExtractor(PaletteExtractor):
    """Palette extractor returning a fixed palette."""

    palette: Palette = field(
        default_factory=lambda: Palette(
            primary="#112233",
            secondary="#445566",
            accent="#778899",
            background="#000000",
            muted="#999999",
            light="#FFFFFF",
        )
    )
    error: Exception | None = None

    async def extract(self, image_bytes: bytes) -> Palette:
        if self.error is not None:
            raise self.error
        return self.palette


@dataclass
class FakeImageGenerator(ImageGenerator):
    """Image generator failing for selected prompts."""

    fail_names: set[str] = field(default_factory=set)
    image_url: str | None = None
    prompts: list[str] = field(default_factory=list)
    conversations: set[str] = field(default_factory=set)
    forgotten: list[str] = field(default_factory=list)

    async def generate(
        self, prompt: str, *, conversation_id: str, width: int, height: int
    ) -> GeneratedImage:
        self.prompts.append(prompt)
        self.conversations.add(conversation_id)
        for name in self.fail_names:
            if f"Create a {name} for" in prompt:
                raise RuntimeError(f"generation blocked for {name}")
        if self.image_url is not None:
            return GeneratedImage(image_url=self.image_url)
        return GeneratedImage(image_bytes=PNG_BYTES, mime_type="image/png")

    def forget(self, conversation_id: str) -> None:
        self.forgotten.append(conversation_id)


@dataclass
class FakeImageDownloader(ImageDownloader):
    """Image downloader serving fixed bytes or raising."""

    mime_type: str = "image/webp"
    error: Exception | None = None
    urls: list[str] = field(default_factory=list)

    async def download(self, url: str) -> GeneratedImage:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return GeneratedImage(
            image_bytes=PNG_BYTES, image_url=url, mime_type=self.mime_type
        )


@dataclass
class FakeBackgroundRemover(BackgroundRemover):
    """Background remover tagging the bytes it processed."""

    error: Exception | None = None
    calls: int = 0

    async def remove(self, image_bytes: bytes) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return image_bytes + b"-transparent"


@dataclass
class FakeCodeGenerator(CodeGenerator):
    """Code generator returning fixed markup."""

    markup: str = WHEEL_MARKUP
    error: Exception | None = None
    asset_maps: list[dict[str, str]] = field(default_factory=list)

    async def generate(
        self,
        analysis: LandingAnalysis,
        asset_map: dict[str, str],
        palette: Palette,
    ) -> str:
        self.asset_maps.append(asset_map)
        if self.error is not None:
            raise self.error
        return self.markup


@dataclass
class FakeLlmClient(LlmClient):
    """LLM client returning canned payloads and recording requests."""

    structured_payload: dict[str, object] = field(default_factory=dict)
    text: str = "<html></html>"
    requests: list[dict[str, object]] = field(default_factory=list)

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
        self.requests.append(
            {
                "model": model,
                "schema_name": schema_name,
                "prompt": prompt,
                "image_data_url": image_data_url,
            }
        )
        return self.structured_payload

    async def complete(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        instructions: str,
        prompt: str,
    ) -> str:
        self.requests.append({"model": model, "prompt": prompt})
        return self.text


@pytest.fixture
def storage_path(tmp_path: Path) -> Path:
    path = tmp_path / "storage"
    path.mkdir()
    return path


@pytest.fixture
def sounds_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sounds"
    path.mkdir()
    (path / "spin.mp3").write_bytes(b"ID3-spin")
    (path / "win.mp3").write_bytes(b"ID3-win")
    return path


@pytest.fixture
def settings(storage_path: Path, sounds_dir: Path) -> Settings:
    return Settings(
        openai_api_key="test-key",
        storage_path=str(storage_path),
        default_sounds_dir=str(sounds_dir),
    )


@pytest.fixture
def assembler(storage_path: Path, sounds_dir: Path) -> LandingAssembler:
    return LandingAssembler(storage_path=storage_path, default_sounds_dir=sounds_dir)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def reference_finder() -> FakeReferenceFinder:
    return FakeReferenceFinder()


@pytest.fixture
def palette_extractor() -> FakePaletteExtractor:
    return FakePaletteExtractor()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def image_downloader() -> FakeImageDownloader:
    return FakeImageDownloader()


@pytest.fixture
def background_remover() -> FakeBackgroundRemover:
    return FakeBackgroundRemover()


@pytest.fixture
def code_generator() -> FakeCodeGenerator:
    return FakeCodeGenerator()


@pytest.fixture
def orchestrator(  # noqa: PLR0913
    analyzer: FakeAnalyzer,
    reference_finder: FakeReferenceFinder,
    palette_extractor: FakePaletteExtractor,
    image_generator: FakeImageGenerator,
    background_remover: FakeBackgroundRemover,
    code_generator: FakeCodeGenerator,
    assembler: LandingAssembler,
    storage_path: Path,
    image_downloader: FakeImageDownloader,
) -> LandingOrchestrator:
    return LandingOrchestrator(
        analyzer=analyzer,
        reference_finder=reference_finder,
        palette_extractor=palette_extractor,
        image_generator=image_generator,
        background_remover=background_remover,
        code_generator=code_generator,
        assembler=assembler,
        storage_path=storage_path,
        image_downloader=image_downloader,
    )


@pytest.fixture
def container(
    settings: Settings,
    registry: SessionRegistry,
    orchestrator: LandingOrchestrator,
    assembler: LandingAssembler,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session_registry=registry,
        orchestrator=orchestrator,
        assembler=assembler,
        close_resources=close_resources,
    )
