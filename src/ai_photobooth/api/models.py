"""Pydantic models for kiosk API payloads."""

from pydantic import BaseModel, Field

from ai_photobooth.domain.concepts import Concept, KioskSettings, Orientation


class PinPayload(BaseModel):
    """Admin PIN entry."""

    pin: str


class SettingsPayload(BaseModel):
    """Editable kiosk settings."""

    event_name: str
    event_description: str = ""
    folder_id: str = ""
    overlay_image: str | None = None
    background_image: str | None = None
    auto_reset_time: float = Field(default=60, gt=0)
    admin_pin: str = Field(min_length=1)
    orientation: Orientation = Orientation.PORTRAIT
    active_event_id: str | None = None

    def to_domain(self) -> KioskSettings:
        return KioskSettings(**self.model_dump())


class ConceptPayload(BaseModel):
    """Editable concept."""

    id: str = Field(min_length=1)
    name: str
    prompt: str
    thumbnail: str = ""

    def to_domain(self) -> Concept:
        return Concept(**self.model_dump())


class ConceptsPayload(BaseModel):
    """Full replacement of the concept list."""

    concepts: list[ConceptPayload]


class EventPayload(BaseModel):
    """New event details."""

    name: str = Field(min_length=1)
    description: str = ""
    folder_id: str = ""


class StoreUrlPayload(BaseModel):
    """Remote store location."""

    url: str = Field(min_length=1)
