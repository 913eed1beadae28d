"""Gallery registration and listing."""

from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from ai_photobooth.domain.capture import GeneratedImage
from ai_photobooth.domain.gallery import GalleryItem


class GalleryRepository(Protocol):
    """Append-only persistence interface for gallery items."""

    async def register_item(  # noqa: PLR0913
        self,
        *,
        token: str,
        concept_name: str,
        event_id: str | None,
        image_bytes: bytes,
        mime_type: str,
    ) -> GalleryItem:
        """Store a result under ``token`` and return the created item."""

    async def list_items(self, event_id: str | None) -> list[GalleryItem]:
        """Return items, restricted to ``event_id`` when given."""

    async def get_item(self, token: str) -> GalleryItem | None:
        """Return the item registered under ``token``, if any."""


def new_share_token() -> str:
    """Return a random, non-sequential share token (122 bits of entropy)."""
    return str(uuid4())


@dataclass
class GalleryService:
    """Registers finished results and serves the gallery screen."""

    repository: GalleryRepository

    async def register(
        self,
        generated_image: GeneratedImage,
        concept_name: str,
        active_event_id: str | None,
    ) -> GalleryItem:
        """Register a generated image under a fresh share token."""
        return await self.repository.register_item(
            token=new_share_token(),
            concept_name=concept_name,
            event_id=active_event_id,
            image_bytes=generated_image.image_bytes,
            mime_type=generated_image.mime_type,
        )

    async def list_for_event(self, event_id: str | None) -> list[GalleryItem]:
        """Return the items the gallery screen may show.

        With an active event only that event's items are returned, even if
        the store ignores the filter. Without one, everything is listed.
        """
        items = await self.repository.list_items(event_id)
        if event_id is None:
            return items
        return [item for item in items if item.event_id == event_id]

    async def get_by_token(self, token: str) -> GalleryItem | None:
        """Return any historical item by its share token."""
        return await self.repository.get_item(token)
