"""Interfaces of the external services the pipeline depends on."""

from typing import Protocol

from landing_forge.domain.analysis import LandingAnalysis, Palette
from landing_forge.domain.sessions import GeneratedImage, ReferenceImage


class Analyzer(Protocol):
    """Turns a free-text request into a structured analysis."""

    async def analyze(self, prompt: str, image: bytes | None) -> LandingAnalysis:
        """Analyze a landing request."""


class ReferenceFinder(Protocol):
    """Finds reference artwork for a branded game."""

    async def find(self, name: str) -> ReferenceImage:
        """Return reference image bytes for a game name."""


class PaletteExtractor(Protocol):
    """Extracts a colour palette from an image."""

    async def extract(self, image_bytes: bytes) -> Palette:
        """Return the dominant palette of an image."""


class ImageGenerator(Protocol):
    """Generates images inside a shared conversation."""

    async def generate(
        self, prompt: str, *, conversation_id: str, width: int, height: int
    ) -> GeneratedImage:
        """Generate one image."""

    def forget(self, conversation_id: str) -> None:
        """Drop any state kept for a finished conversation."""


class ImageDownloader(Protocol):
    """Fetches images that a generator returned only as URLs."""

    async def download(self, url: str) -> GeneratedImage:
        """Return the image bytes and MIME type behind a URL."""


class BackgroundRemover(Protocol):
    """Removes the background of an image."""

    async def remove(self, image_bytes: bytes) -> bytes:
        """Return the image with a transparent background."""


class CodeGenerator(Protocol):
    """Writes the landing markup."""

    async def generate(
        self,
        analysis: LandingAnalysis,
        asset_map: dict[str, str],
        palette: Palette,
    ) -> str:
        """Return a complete HTML document."""
