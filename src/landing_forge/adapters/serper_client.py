"""Serper image search client for slot reference artwork."""

import logging
from dataclasses import dataclass

import httpx

from landing_forge.domain.sessions import ReferenceImage
from landing_forge.services.collaborators import ReferenceFinder

_MIN_WIDTH = 400
_MIN_HEIGHT = 300
_DOWNLOAD_ATTEMPTS = 3

_logger = logging.getLogger(__name__)


@dataclass
class HttpxSerperReferenceFinder(ReferenceFinder):
    """Reference finder using Serper image search and httpx downloads."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxSerperReferenceFinder":
        """Create a reference finder with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def search_images(self, query: str, num: int = 10) -> list[dict[str, object]]:
        """Search images and return the raw result entries."""
        response = await self.http_client.post(
            f"{self.base_url}/images",
            headers={"X-API-KEY": self.api_key},
            json={"q": query, "num": num, "gl": "us", "hl": "en"},
            timeout=15,
        )
        response.raise_for_status()
        images = response.json().get("images")
        return images if isinstance(images, list) else []

    async def find(self, name: str) -> ReferenceImage:
        """Download the largest usable image found for a slot name."""
        images = await self.search_images(f"{name} slot game official")
        candidates = sorted(
            (
                image
                for image in images
                if int(image.get("imageWidth") or 0) >= _MIN_WIDTH
                and int(image.get("imageHeight") or 0) >= _MIN_HEIGHT
                and image.get("imageUrl")
            ),
            key=lambda image: int(image["imageWidth"]) * int(image["imageHeight"]),
            reverse=True,
        )
        if not candidates:
            raise LookupError(f"No reference images found for {name!r}")

        for image in candidates[:_DOWNLOAD_ATTEMPTS]:
            url = str(image["imageUrl"])
            try:
                response = await self.http_client.get(
                    url,
                    headers={"User-Agent": "Mozilla/5.0 (compatible; LandingForge/1.0)"},
                    follow_redirects=True,
                    timeout=20,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                _logger.warning("Reference download failed: url=%s error=%s", url, exc)
                continue
            return ReferenceImage(
                image_bytes=response.content,
                source_url=url,
                provider=str(image.get("source") or image.get("link") or "") or None,
            )
        raise LookupError(f"Could not download a reference image for {name!r}")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
