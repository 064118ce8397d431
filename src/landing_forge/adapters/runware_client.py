"""Runware background removal client."""

import base64
from dataclasses import dataclass
from uuid import uuid4

import httpx

from landing_forge.services.collaborators import BackgroundRemover
from landing_forge.services.llm import to_data_url


@dataclass
class HttpxRunwareBackgroundRemover(BackgroundRemover):
    """Background remover calling the Runware task API."""

    api_key: str
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_key: str, base_url: str) -> "HttpxRunwareBackgroundRemover":
        """Create a background remover with a managed httpx session."""
        return cls(api_key=api_key, base_url=base_url, http_client=httpx.AsyncClient())

    async def remove(self, image_bytes: bytes) -> bytes:
        """Return a transparent PNG of the image."""
        task = {
            "taskType": "imageBackgroundRemoval",
            "taskUUID": str(uuid4()),
            "inputImage": to_data_url(image_bytes),
            "outputType": "base64Data",
            "outputFormat": "PNG",
        }
        response = await self.http_client.post(
            self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json=[task],
            timeout=60,
        )
        response.raise_for_status()
        payload = response.json()
        if payload.get("errors"):
            raise RuntimeError(f"Runware background removal failed: {payload['errors']}")
        data = payload.get("data") or []
        if not data or not data[0].get("imageBase64Data"):
            raise RuntimeError("Runware returned no image")
        return base64.b64decode(data[0]["imageBase64Data"])

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
