"""HTTP client for the remote settings and gallery store."""

import base64
from dataclasses import dataclass

import httpx

from ai_photobooth.domain.concepts import (
    Concept,
    EventRecord,
    KioskSettings,
    Orientation,
)
from ai_photobooth.domain.errors import StoreUnreachable, Unauthorized
from ai_photobooth.domain.gallery import GalleryItem
from ai_photobooth.services.configuration import SettingsRepository
from ai_photobooth.services.gallery import GalleryRepository

_UNAUTHORIZED_ERRORS = {"unauthorized", "invalid_pin", "forbidden"}


@dataclass
class HttpxKioskStoreClient(SettingsRepository, GalleryRepository):
    """Store client speaking the action-based JSON protocol.

    Reads are ``GET {base_url}?action=...``; writes are ``POST`` with a JSON
    body. Every reply is an envelope ``{"ok": bool, "data": ..., "error": ...}``.
    """

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 15

    @classmethod
    def create(cls, base_url: str, timeout: float = 15) -> "HttpxKioskStoreClient":
        """Create a store client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(follow_redirects=True),
            timeout=timeout,
        )

    def set_base_url(self, base_url: str) -> None:
        """Point subsequent requests at ``base_url``."""
        self.base_url = base_url.rstrip("/")

    async def load_settings(self) -> KioskSettings:
        """Fetch the kiosk settings."""
        data = await self._get("loadSettings")
        return _settings_from_payload(_as_dict(data))

    async def load_concepts(self) -> list[Concept]:
        """Fetch the active concept list."""
        data = await self._get("loadConcepts")
        return [_concept_from_payload(row) for row in _as_list(data)]

    async def save_settings(self, settings: KioskSettings, pin: str) -> None:
        """Persist settings, authorised by ``pin``."""
        await self._post(
            "saveSettings", {"pin": pin, "settings": _settings_to_payload(settings)}
        )

    async def save_concepts(self, concepts: list[Concept], pin: str) -> None:
        """Persist concepts, authorised by ``pin``."""
        await self._post(
            "saveConcepts",
            {"pin": pin, "concepts": [_concept_to_payload(c) for c in concepts]},
        )

    async def upload_overlay(
        self, image_bytes: bytes, mime_type: str, pin: str
    ) -> str:
        """Upload an overlay image and return its URL."""
        data = _as_dict(
            await self._post(
                "uploadOverlay",
                {
                    "pin": pin,
                    "mimeType": mime_type,
                    "image": base64.b64encode(image_bytes).decode("utf-8"),
                },
            )
        )
        url = data.get("url")
        if not isinstance(url, str) or not url:
            raise StoreUnreachable("Store did not return an overlay URL")
        return url

    async def list_events(self) -> list[EventRecord]:
        """Fetch all events."""
        data = await self._get("listEvents")
        return [_event_from_payload(row) for row in _as_list(data)]

    async def create_event(
        self, name: str, description: str, folder_id: str, pin: str
    ) -> EventRecord:
        """Create and activate an event."""
        data = await self._post(
            "createEvent",
            {
                "pin": pin,
                "name": name,
                "description": description,
                "folderId": folder_id,
            },
        )
        return _event_from_payload(_as_dict(data))

    async def register_item(  # noqa: PLR0913
        self,
        *,
        token: str,
        concept_name: str,
        event_id: str | None,
        image_bytes: bytes,
        mime_type: str,
    ) -> GalleryItem:
        """Upload a result and return the registered gallery item."""
        data = _as_dict(
            await self._post(
                "registerGalleryItem",
                {
                    "token": token,
                    "conceptName": concept_name,
                    "eventId": event_id,
                    "mimeType": mime_type,
                    "image": base64.b64encode(image_bytes).decode("utf-8"),
                },
            )
        )
        return _gallery_item_from_payload(
            {"token": token, "conceptName": concept_name, "eventId": event_id} | data
        )

    async def list_items(self, event_id: str | None) -> list[GalleryItem]:
        """Fetch gallery items, filtered by event when given."""
        params = {"eventId": event_id} if event_id else {}
        data = await self._get("listGalleryItems", params)
        return [_gallery_item_from_payload(row) for row in _as_list(data)]

    async def get_item(self, token: str) -> GalleryItem | None:
        """Fetch one gallery item by share token."""
        data = await self._get("getGalleryItem", {"token": token})
        if not data:
            return None
        return _gallery_item_from_payload(_as_dict(data))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(self, action: str, params: dict[str, str] | None = None) -> object:
        return await self._request("GET", action, params=params or {})

    async def _post(self, action: str, payload: dict[str, object]) -> object:
        return await self._request("POST", action, json=payload)

    async def _request(
        self,
        method: str,
        action: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, object] | None = None,
    ) -> object:
        if not self.base_url:
            raise StoreUnreachable("Store URL is not configured")
        try:
            response = await self.http_client.request(
                method,
                self.base_url,
                params={"action": action, **(params or {})},
                json=json,
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise StoreUnreachable(f"{action} failed: {exc}") from exc
        if response.status_code in {401, 403}:
            raise Unauthorized(f"{action} rejected by store")
        if response.is_error:
            raise StoreUnreachable(f"{action} returned HTTP {response.status_code}")
        try:
            envelope = response.json()
        except ValueError as exc:
            raise StoreUnreachable(f"{action} returned invalid JSON") from exc
        if not isinstance(envelope, dict):
            raise StoreUnreachable(f"{action} returned an unexpected payload")
        if not envelope.get("ok"):
            error = str(envelope.get("error") or "unknown error")
            if error.lower() in _UNAUTHORIZED_ERRORS:
                raise Unauthorized(f"{action} rejected by store")
            raise StoreUnreachable(f"{action} failed: {error}")
        return envelope.get("data")


def _as_dict(data: object) -> dict[str, object]:
    if not isinstance(data, dict):
        raise StoreUnreachable("Store returned an unexpected payload")
    return data


def _as_list(data: object) -> list[dict[str, object]]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise StoreUnreachable("Store returned an unexpected payload")
    return [row for row in data if isinstance(row, dict)]


def _optional_str(value: object) -> str | None:
    return str(value) if value not in (None, "") else None


def _settings_from_payload(row: dict[str, object]) -> KioskSettings:
    try:
        orientation = Orientation(str(row.get("orientation") or "portrait"))
        raw_reset = row.get("autoResetTime")
        auto_reset = 60.0 if raw_reset in (None, "") else float(raw_reset)
    except (TypeError, ValueError) as exc:
        raise StoreUnreachable(f"Store returned invalid settings: {exc}") from exc
    admin_pin = row.get("adminPin")
    if admin_pin in (None, ""):
        raise StoreUnreachable("Store returned settings without an admin PIN")
    return KioskSettings(
        event_name=str(row.get("eventName") or ""),
        event_description=str(row.get("eventDescription") or ""),
        folder_id=str(row.get("folderId") or ""),
        overlay_image=_optional_str(row.get("overlayImage")),
        background_image=_optional_str(row.get("backgroundImage")),
        auto_reset_time=auto_reset,
        admin_pin=str(admin_pin),
        orientation=orientation,
        active_event_id=_optional_str(row.get("activeEventId")),
    )


def _settings_to_payload(settings: KioskSettings) -> dict[str, object]:
    return {
        "eventName": settings.event_name,
        "eventDescription": settings.event_description,
        "folderId": settings.folder_id,
        "overlayImage": settings.overlay_image,
        "backgroundImage": settings.background_image,
        "autoResetTime": settings.auto_reset_time,
        "adminPin": settings.admin_pin,
        "orientation": settings.orientation.value,
        "activeEventId": settings.active_event_id,
    }


def _concept_from_payload(row: dict[str, object]) -> Concept:
    return Concept(
        id=str(row.get("id", "")),
        name=str(row.get("name", "")),
        prompt=str(row.get("prompt", "")),
        thumbnail=str(row.get("thumbnail", "")),
    )


def _concept_to_payload(concept: Concept) -> dict[str, object]:
    return {
        "id": concept.id,
        "name": concept.name,
        "prompt": concept.prompt,
        "thumbnail": concept.thumbnail,
    }


def _event_from_payload(row: dict[str, object]) -> EventRecord:
    return EventRecord(
        id=str(row.get("id", "")),
        name=str(row.get("name", "")),
        description=str(row.get("description", "")),
        folder_id=str(row.get("folderId", "")),
        created_at=str(row.get("createdAt", "")),
        is_active=bool(row.get("isActive", False)),
    )


def _gallery_item_from_payload(row: dict[str, object]) -> GalleryItem:
    image_url = str(row.get("imageUrl", ""))
    return GalleryItem(
        id=str(row.get("id", "")),
        created_at=str(row.get("createdAt", "")),
        concept_name=str(row.get("conceptName", "")),
        image_url=image_url,
        download_url=str(row.get("downloadUrl") or image_url),
        token=str(row.get("token", "")),
        event_id=_optional_str(row.get("eventId")),
    )
