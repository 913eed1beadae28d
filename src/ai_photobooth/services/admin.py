"""Admin screen: PIN gate and configuration edits."""

import hmac
import logging
from dataclasses import dataclass, field, replace
from typing import Protocol

from ai_photobooth.domain.concepts import Concept, EventRecord, KioskSettings
from ai_photobooth.domain.errors import ErrorReport, NotAuthenticated, StoreError
from ai_photobooth.domain.kiosk import AdminState
from ai_photobooth.services.configuration import (
    KioskConfiguration,
    SettingsRepository,
)
from ai_photobooth.services.local_config import LocalConfigService

logger = logging.getLogger(__name__)


class StoreEndpoint(Protocol):
    """Store client whose base URL can be changed at runtime."""

    def set_base_url(self, base_url: str) -> None:
        """Point subsequent requests at ``base_url``."""


@dataclass(frozen=True)
class AdminOutcome:
    """Result of an admin save; failures keep the drafts intact."""

    ok: bool
    error: ErrorReport | None = None
    url: str | None = None
    event: EventRecord | None = None


@dataclass
class AdminService:
    """Nested UNAUTHENTICATED/AUTHENTICATED machine for the ADMIN screen."""

    configuration: KioskConfiguration
    repository: SettingsRepository
    local_config: LocalConfigService
    store_endpoint: StoreEndpoint
    state: AdminState = field(default=AdminState.UNAUTHENTICATED, init=False)
    draft_settings: KioskSettings | None = field(default=None, init=False)
    draft_concepts: list[Concept] = field(default_factory=list, init=False)

    @property
    def authenticated(self) -> bool:
        return self.state is AdminState.AUTHENTICATED

    def reset(self) -> None:
        """Lock the screen and start fresh drafts from the live configuration."""
        self.state = AdminState.UNAUTHENTICATED
        self.draft_settings = self.configuration.settings
        self.draft_concepts = list(self.configuration.concepts)

    def authenticate(self, pin: str) -> bool:
        """Compare ``pin`` with the configured admin PIN."""
        expected = self.configuration.settings.admin_pin
        # An empty configured PIN never unlocks the screen.
        if pin and expected and hmac.compare_digest(
            pin.encode("utf-8"), expected.encode("utf-8")
        ):
            self.state = AdminState.AUTHENTICATED
            logger.info("Admin authenticated")
            return True
        logger.warning("Admin PIN rejected")
        self.state = AdminState.UNAUTHENTICATED
        return False

    def logout(self) -> None:
        self.state = AdminState.UNAUTHENTICATED

    async def save_settings(self, settings: KioskSettings) -> AdminOutcome:
        """Persist settings; on success they become the live settings."""
        pin = self._current_pin()
        self.draft_settings = settings
        try:
            await self.repository.save_settings(settings, pin)
        except StoreError as exc:
            logger.warning("Saving settings failed: %s", exc)
            return AdminOutcome(ok=False, error=ErrorReport.from_exception(exc))
        if self._still_signed_in("settings"):
            self.configuration.apply_settings(settings)
        return AdminOutcome(ok=True)

    async def save_concepts(self, concepts: list[Concept]) -> AdminOutcome:
        """Persist the concept list; on success it becomes live."""
        pin = self._current_pin()
        self.draft_concepts = list(concepts)
        try:
            await self.repository.save_concepts(concepts, pin)
        except StoreError as exc:
            logger.warning("Saving concepts failed: %s", exc)
            return AdminOutcome(ok=False, error=ErrorReport.from_exception(exc))
        if self._still_signed_in("concepts"):
            self.configuration.apply_concepts(concepts)
        return AdminOutcome(ok=True)

    async def upload_overlay(self, image_bytes: bytes, mime_type: str) -> AdminOutcome:
        """Upload an overlay and point the settings draft at it."""
        pin = self._current_pin()
        try:
            url = await self.repository.upload_overlay(image_bytes, mime_type, pin)
        except StoreError as exc:
            logger.warning("Overlay upload failed: %s", exc)
            return AdminOutcome(ok=False, error=ErrorReport.from_exception(exc))
        self.draft_settings = replace(self._draft(), overlay_image=url)
        return AdminOutcome(ok=True, url=url)

    async def list_events(self) -> list[EventRecord]:
        self._require_authenticated()
        return await self.repository.list_events()

    async def create_event(
        self, name: str, description: str, folder_id: str
    ) -> AdminOutcome:
        """Create an event and make it active for new gallery items."""
        pin = self._current_pin()
        try:
            event = await self.repository.create_event(
                name, description, folder_id, pin
            )
        except StoreError as exc:
            logger.warning("Creating event failed: %s", exc)
            return AdminOutcome(ok=False, error=ErrorReport.from_exception(exc))
        if self._still_signed_in("event"):
            self.draft_settings = replace(self._draft(), active_event_id=event.id)
            self.configuration.apply_settings(
                replace(self.configuration.settings, active_event_id=event.id)
            )
        return AdminOutcome(ok=True, event=event)

    def update_store_url(self, url: str) -> str:
        """Cache a new store URL locally and use it immediately."""
        self._require_authenticated()
        cleaned = self.local_config.set_store_url(url)
        self.store_endpoint.set_base_url(cleaned)
        logger.info("Store URL changed to %s", cleaned)
        return cleaned

    def _current_pin(self) -> str:
        self._require_authenticated()
        return self.configuration.settings.admin_pin

    def _still_signed_in(self, what: str) -> bool:
        # After a timeout the next LANDING reload reads the stored value.
        if self.authenticated:
            return True
        logger.info("Admin left before the %s save completed", what)
        return False

    def _require_authenticated(self) -> None:
        if not self.authenticated:
            raise NotAuthenticated("Admin PIN required")

    def _draft(self) -> KioskSettings:
        return self.draft_settings or self.configuration.settings
