"""OpenAI Responses API client for image transformation."""

import base64
import binascii
from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from ai_photobooth.domain.errors import MissingCredential, ServiceUnreachable
from ai_photobooth.services.generation import (
    GenerationCandidate,
    ImageGenerationClient,
)


@dataclass
class OpenAIImageClient(ImageGenerationClient):
    """Image generation client backed by the Responses API image tool."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str, timeout: float) -> "OpenAIImageClient":
        """Create a client without SDK-level retries."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0))

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        size: str,
    ) -> list[GenerationCandidate]:
        """Call the Responses API and return its output items as candidates."""
        try:
            response = await self.client.responses.create(
                model=model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": prompt},
                            {"type": "input_image", "image_url": image_data_url},
                        ],
                    }
                ],
                tools=[{"type": "image_generation", "size": size}],
                store=False,
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise MissingCredential("Image service rejected the credential") from exc
        except openai.APIError as exc:
            raise ServiceUnreachable(f"Image service request failed: {exc}") from exc
        return [_to_candidate(item) for item in response.output or []]


def _to_candidate(item: object) -> GenerationCandidate:
    item_type = getattr(item, "type", None)
    if item_type == "image_generation_call":
        result = getattr(item, "result", None)
        if not result:
            return GenerationCandidate()
        try:
            image_bytes = base64.b64decode(result, validate=True)
        except (binascii.Error, ValueError):
            return GenerationCandidate()
        return GenerationCandidate(image_bytes=image_bytes, mime_type="image/png")
    if item_type == "message":
        texts = [
            getattr(part, "text", "")
            for part in getattr(item, "content", None) or []
        ]
        return GenerationCandidate(text="".join(texts) or None)
    return GenerationCandidate()
