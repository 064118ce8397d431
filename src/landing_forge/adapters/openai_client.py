"""OpenAI Responses API clients."""

import base64
import json
import logging
from dataclasses import dataclass, field

from openai import AsyncOpenAI

from landing_forge.domain.sessions import GeneratedImage
from landing_forge.services.collaborators import ImageGenerator
from landing_forge.services.llm import LlmClient

_logger = logging.getLogger(__name__)


@dataclass
class OpenAIResponsesClient(LlmClient):
    """LLM client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIResponsesClient":
        """Create an OpenAI Responses client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = [{"type": "input_text", "text": prompt}]
        if image_data_url:
            content.append({"type": "input_image", "image_url": image_data_url})
        request_payload: dict[str, object] = {
            "model": model,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                }
            },
        }
        if instructions:
            request_payload["instructions"] = instructions
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def complete(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        instructions: str,
        prompt: str,
    ) -> str:
        """Call OpenAI Responses API for plain text output."""
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": instructions,
            "input": prompt,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return output_text


@dataclass
class OpenAIImageGenerator(ImageGenerator):
    """Image generator using the Responses API image generation tool.

    Calls sharing a conversation id chain through ``previous_response_id`` so
    every asset of a landing is drawn in the same style.
    """

    client: AsyncOpenAI
    model: str
    image_model: str
    _conversations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(cls, api_key: str, model: str, image_model: str) -> "OpenAIImageGenerator":
        """Create an OpenAI image generator."""
        return cls(
            client=AsyncOpenAI(api_key=api_key), model=model, image_model=image_model
        )

    async def generate(
        self, prompt: str, *, conversation_id: str, width: int, height: int
    ) -> GeneratedImage:
        """Generate one image in the given conversation."""
        request_payload: dict[str, object] = {
            "model": self.model,
            "input": prompt,
            "tools": [
                {
                    "type": "image_generation",
                    "model": self.image_model,
                    "size": _closest_size(width, height),
                    "output_format": "png",
                }
            ],
            "tool_choice": {"type": "image_generation"},
        }
        previous_id = self._conversations.get(conversation_id)
        if previous_id:
            request_payload["previous_response_id"] = previous_id

        response = await self.client.responses.create(**request_payload)
        self._conversations[conversation_id] = response.id
        for item in response.output:
            if getattr(item, "type", None) == "image_generation_call" and item.result:
                return GeneratedImage(
                    image_bytes=base64.b64decode(item.result), mime_type="image/png"
                )
        raise RuntimeError("OpenAI returned no image")

    def forget(self, conversation_id: str) -> None:
        """Stop chaining requests for a finished conversation."""
        self._conversations.pop(conversation_id, None)


def _closest_size(width: int, height: int) -> str:
    """Map requested dimensions onto a supported generation size."""
    ratio = width / height if height else 1.0
    if ratio >= 1.25:
        return "1536x1024"
    if ratio <= 0.8:
        return "1024x1536"
    return "1024x1024"
