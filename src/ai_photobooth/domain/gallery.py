"""Domain models for the shareable gallery."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GalleryItem:
    """A registered result, addressable by its share token."""

    id: str
    created_at: str
    concept_name: str
    image_url: str
    download_url: str
    token: str
    event_id: str | None
