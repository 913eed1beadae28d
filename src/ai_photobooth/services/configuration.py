"""Process-wide kiosk settings and concept list."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from ai_photobooth.domain.concepts import (
    DEFAULT_SETTINGS,
    Concept,
    EventRecord,
    KioskSettings,
)
from ai_photobooth.domain.errors import ConceptNotFound, StoreError

logger = logging.getLogger(__name__)


class SettingsRepository(Protocol):
    """Remote store interface for settings, concepts and events.

    Mutating calls carry the admin PIN; the store decides whether it is
    valid and raises ``Unauthorized`` when it is not.
    """

    async def load_settings(self) -> KioskSettings:
        """Return the stored kiosk settings."""

    async def load_concepts(self) -> list[Concept]:
        """Return the active concept list."""

    async def save_settings(self, settings: KioskSettings, pin: str) -> None:
        """Persist kiosk settings."""

    async def save_concepts(self, concepts: list[Concept], pin: str) -> None:
        """Persist the concept list."""

    async def upload_overlay(
        self, image_bytes: bytes, mime_type: str, pin: str
    ) -> str:
        """Upload an overlay image and return its public URL."""

    async def list_events(self) -> list[EventRecord]:
        """Return all known events."""

    async def create_event(
        self, name: str, description: str, folder_id: str, pin: str
    ) -> EventRecord:
        """Create an event, make it the active one and return it."""


@dataclass
class KioskConfiguration:
    """Single-writer holder for settings and concepts.

    Sessions only read from it. ``reload`` runs on every return to LANDING;
    ``apply_*`` is reserved for successful admin saves.
    """

    repository: SettingsRepository
    settings: KioskSettings = DEFAULT_SETTINGS
    concepts: tuple[Concept, ...] = field(default_factory=tuple)

    async def reload(self) -> bool:
        """Re-read settings and concepts, keeping the previous copy on failure."""
        try:
            settings = await self.repository.load_settings()
            concepts = await self.repository.load_concepts()
        except StoreError as exc:
            logger.warning("Keeping cached configuration, reload failed: %s", exc)
            return False
        self.settings = settings
        self.concepts = tuple(concepts)
        return True

    def find_concept(self, concept_id: str) -> Concept:
        """Return the concept with ``concept_id``."""
        for concept in self.concepts:
            if concept.id == concept_id:
                return concept
        raise ConceptNotFound(f"Unknown concept {concept_id!r}")

    def apply_settings(self, settings: KioskSettings) -> None:
        """Replace the in-memory settings after a successful save."""
        self.settings = settings

    def apply_concepts(self, concepts: list[Concept]) -> None:
        """Replace the in-memory concepts after a successful save."""
        self.concepts = tuple(concepts)
