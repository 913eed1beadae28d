"""Domain models for captured and generated images."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class CapturedFrame:
    """A still frame cropped to the kiosk's target aspect ratio."""

    image_bytes: bytes
    mime_type: str
    width: int
    height: int
    captured_at: datetime


@dataclass(frozen=True)
class GeneratedImage:
    """Image returned by the generative service."""

    image_bytes: bytes
    mime_type: str
