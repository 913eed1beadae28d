"""Domain models for the kiosk session lifecycle."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from ai_photobooth.domain.capture import CapturedFrame, GeneratedImage
from ai_photobooth.domain.concepts import Concept
from ai_photobooth.domain.errors import ErrorReport
from ai_photobooth.domain.gallery import GalleryItem


class KioskState(StrEnum):
    """Screens the kiosk can show. LANDING is the idle state."""

    LANDING = "LANDING"
    THEMES = "THEMES"
    CAMERA = "CAMERA"
    GENERATING = "GENERATING"
    RESULT = "RESULT"
    GALLERY = "GALLERY"
    ADMIN = "ADMIN"


class AdminState(StrEnum):
    """Nested authentication state of the ADMIN screen."""

    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATED = "AUTHENTICATED"


@dataclass
class KioskSession:
    """Transient state for one guest, from CAMERA until LANDING."""

    id: UUID
    concept: Concept
    captured_frame: CapturedFrame | None = None
    generated_image: GeneratedImage | None = None
    gallery_item: GalleryItem | None = None
    error: ErrorReport | None = None
