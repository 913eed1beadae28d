"""Generative transformation of captured frames."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from ai_photobooth.domain.capture import CapturedFrame, GeneratedImage
from ai_photobooth.domain.concepts import Concept
from ai_photobooth.domain.errors import MissingCredential, NoImageReturned

logger = logging.getLogger(__name__)

# Nearest output sizes the image tool accepts for each kiosk aspect ratio.
OUTPUT_SIZES: dict[str, str] = {
    "9:16": "1024x1536",
    "16:9": "1536x1024",
}


@dataclass(frozen=True)
class GenerationCandidate:
    """One output of the generative service, in response order."""

    image_bytes: bytes | None = None
    mime_type: str = "image/png"
    text: str | None = None


class ImageGenerationClient(Protocol):
    """Interface for the external generative image service."""

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        size: str,
    ) -> list[GenerationCandidate]:
        """Send the frame and prompt, returning candidates in order.

        Implementations raise ``ServiceUnreachable`` on transport or service
        failures and ``MissingCredential`` when the credential is rejected.
        """


def build_prompt(concept_prompt: str, aspect_ratio: str) -> str:
    """Augment a concept prompt with the fixed quality qualifiers."""
    return (
        f"{concept_prompt}. High resolution, {aspect_ratio} aspect ratio, "
        "cinematic lighting, photorealistic, maintaining person's facial "
        "features and identity. No text, no watermark."
    )


def select_first_image(
    candidates: list[GenerationCandidate],
) -> GenerationCandidate | None:
    """Return the first candidate that carries image data."""
    for candidate in candidates:
        if candidate.image_bytes:
            return candidate
    return None


@dataclass
class GenerationService:
    """Turns a captured frame into a generated image.

    Makes exactly one service call per ``generate``; retrying is up to the
    caller. ``client`` is ``None`` when no credential is configured.
    """

    client: ImageGenerationClient | None
    model: str

    @property
    def available(self) -> bool:
        return self.client is not None

    async def generate(
        self, frame: CapturedFrame, concept: Concept, aspect_ratio: str
    ) -> GeneratedImage:
        """Transform ``frame`` in the style of ``concept``."""
        if self.client is None:
            raise MissingCredential("Image generation credential is not configured")
        candidates = await self.client.generate(
            model=self.model,
            prompt=build_prompt(concept.prompt, aspect_ratio),
            image_data_url=_to_data_url(frame.image_bytes, frame.mime_type),
            size=OUTPUT_SIZES.get(aspect_ratio, "auto"),
        )
        selected = select_first_image(candidates)
        if selected is None or selected.image_bytes is None:
            logger.warning(
                "Generation for concept %s returned %d candidates without an image",
                concept.id,
                len(candidates),
            )
            raise NoImageReturned("No image data returned from the generator")
        return GeneratedImage(
            image_bytes=selected.image_bytes, mime_type=selected.mime_type
        )


def _to_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Convert bytes to a base64 data URL for image input."""
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"
