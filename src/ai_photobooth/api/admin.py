"""Admin endpoints, usable only while the kiosk shows the ADMIN screen."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request

from ai_photobooth.api.models import (
    ConceptsPayload,
    EventPayload,
    PinPayload,
    SettingsPayload,
    StoreUrlPayload,
)
from ai_photobooth.api.serializers import (
    serialize_concept,
    serialize_event,
    serialize_outcome,
    serialize_settings,
)

if TYPE_CHECKING:
    from ai_photobooth.containers import AppContainer
    from ai_photobooth.services.admin import AdminService

router = APIRouter(prefix="/kiosk/admin", tags=["admin"])


def _admin(request: Request) -> AdminService:
    container: AppContainer = request.app.state.container
    return container.kiosk.admin()


@router.post("/login")
async def login(payload: PinPayload, request: Request) -> dict[str, object]:
    """Unlock the admin screen with the kiosk PIN."""
    admin = _admin(request)
    authenticated = admin.authenticate(payload.pin)
    return {"authenticated": authenticated, "admin_state": admin.state}


@router.post("/logout")
async def logout(request: Request) -> dict[str, object]:
    """Lock the admin screen again."""
    admin = _admin(request)
    admin.logout()
    return {"authenticated": False, "admin_state": admin.state}


@router.get("/drafts")
async def drafts(request: Request) -> dict[str, object]:
    """Return the settings and concepts being edited."""
    admin = _admin(request)
    if not admin.authenticated or admin.draft_settings is None:
        return {"settings": None, "concepts": []}
    return {
        "settings": serialize_settings(admin.draft_settings),
        "concepts": [serialize_concept(concept) for concept in admin.draft_concepts],
    }


@router.put("/settings")
async def save_settings(
    payload: SettingsPayload, request: Request
) -> dict[str, object]:
    """Save kiosk settings to the remote store."""
    outcome = await _admin(request).save_settings(payload.to_domain())
    return serialize_outcome(outcome)


@router.put("/concepts")
async def save_concepts(
    payload: ConceptsPayload, request: Request
) -> dict[str, object]:
    """Replace the concept list in the remote store."""
    concepts = [concept.to_domain() for concept in payload.concepts]
    outcome = await _admin(request).save_concepts(concepts)
    return serialize_outcome(outcome)


@router.post("/overlay")
async def upload_overlay(request: Request) -> dict[str, object]:
    """Upload the raw request body as the overlay image."""
    admin = _admin(request)
    mime_type = request.headers.get("content-type", "image/png")
    outcome = await admin.upload_overlay(await request.body(), mime_type)
    return serialize_outcome(outcome)


@router.get("/events")
async def list_events(request: Request) -> dict[str, object]:
    """Return all events known to the store."""
    events = await _admin(request).list_events()
    return {"events": [serialize_event(event) for event in events]}


@router.post("/events")
async def create_event(payload: EventPayload, request: Request) -> dict[str, object]:
    """Create a new event and make it active."""
    outcome = await _admin(request).create_event(
        payload.name, payload.description, payload.folder_id
    )
    return serialize_outcome(outcome)


@router.put("/store-url")
async def update_store_url(
    payload: StoreUrlPayload, request: Request
) -> dict[str, object]:
    """Change and cache the remote store URL."""
    url = _admin(request).update_store_url(payload.url)
    return {"url": url}
