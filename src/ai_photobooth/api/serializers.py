"""JSON shapes for kiosk API responses."""

from dataclasses import asdict

from ai_photobooth.domain.concepts import Concept, EventRecord, KioskSettings
from ai_photobooth.domain.gallery import GalleryItem
from ai_photobooth.services.admin import AdminOutcome
from ai_photobooth.services.kiosk import KioskSnapshot


def serialize_snapshot(snapshot: KioskSnapshot) -> dict[str, object]:
    return asdict(snapshot)


def serialize_gallery_item(item: GalleryItem) -> dict[str, object]:
    return asdict(item)


def serialize_settings(settings: KioskSettings) -> dict[str, object]:
    return asdict(settings)


def serialize_concept(concept: Concept) -> dict[str, object]:
    return asdict(concept)


def serialize_event(event: EventRecord) -> dict[str, object]:
    return asdict(event)


def serialize_outcome(outcome: AdminOutcome) -> dict[str, object]:
    return {
        "ok": outcome.ok,
        "error": asdict(outcome.error) if outcome.error else None,
        "url": outcome.url,
        "event": serialize_event(outcome.event) if outcome.event else None,
    }
