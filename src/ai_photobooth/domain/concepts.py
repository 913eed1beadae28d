"""Domain models for kiosk configuration."""

from dataclasses import dataclass
from enum import StrEnum


class Orientation(StrEnum):
    """Physical orientation of the kiosk screen and captured frames."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


@dataclass(frozen=True)
class Concept:
    """A themed transformation style offered to guests."""

    id: str
    name: str
    prompt: str
    thumbnail: str


@dataclass(frozen=True)
class KioskSettings:
    """Process-wide kiosk settings owned by the admin."""

    event_name: str
    event_description: str
    folder_id: str
    overlay_image: str | None
    background_image: str | None
    auto_reset_time: float
    admin_pin: str
    orientation: Orientation
    active_event_id: str | None = None


@dataclass(frozen=True)
class EventRecord:
    """An event that gallery items are grouped under."""

    id: str
    name: str
    description: str
    folder_id: str
    created_at: str
    is_active: bool


DEFAULT_SETTINGS = KioskSettings(
    event_name="AI PHOTOBOOTH",
    event_description="Transform Your Reality",
    folder_id="",
    overlay_image=None,
    background_image=None,
    auto_reset_time=60,
    admin_pin="1234",
    orientation=Orientation.PORTRAIT,
)
