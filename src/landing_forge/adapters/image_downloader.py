"""Download client for images returned as URLs."""

import mimetypes
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from landing_forge.domain.sessions import GeneratedImage
from landing_forge.services.collaborators import ImageDownloader


@dataclass
class HttpxImageDownloader(ImageDownloader):
    """Image downloader using httpx."""

    http_client: httpx.AsyncClient
    timeout: float = 30.0

    @classmethod
    def create(cls, timeout: float = 30.0) -> "HttpxImageDownloader":
        """Create a downloader with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(), timeout=timeout)

    async def download(self, url: str) -> GeneratedImage:
        """Fetch an image and infer its MIME type."""
        response = await self.http_client.get(
            url, follow_redirects=True, timeout=self.timeout
        )
        response.raise_for_status()
        if not response.content:
            raise RuntimeError(f"Image download returned no data: {url}")
        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not mime_type.startswith("image/"):
            guessed, _ = mimetypes.guess_type(urlparse(url).path)
            mime_type = guessed or "image/png"
        return GeneratedImage(
            image_bytes=response.content, image_url=url, mime_type=mime_type
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
