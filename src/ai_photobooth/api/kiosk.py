"""Guest-facing kiosk endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, Response, status

from ai_photobooth.api.serializers import serialize_gallery_item, serialize_snapshot
from ai_photobooth.domain.errors import StoreError

if TYPE_CHECKING:
    from ai_photobooth.containers import AppContainer
    from ai_photobooth.services.kiosk import KioskStateMachine

router = APIRouter(tags=["kiosk"])


def _kiosk(request: Request) -> KioskStateMachine:
    container: AppContainer = request.app.state.container
    return container.kiosk


def _state(kiosk: KioskStateMachine) -> dict[str, object]:
    return serialize_snapshot(kiosk.snapshot())


@router.get("/kiosk/state")
async def kiosk_state(request: Request) -> dict[str, object]:
    """Return what the display should currently show."""
    return _state(_kiosk(request))


@router.post("/kiosk/start")
async def start(request: Request) -> dict[str, object]:
    """Leave LANDING for the concept picker."""
    kiosk = _kiosk(request)
    await kiosk.start()
    return _state(kiosk)


@router.post("/kiosk/gallery")
async def open_gallery(request: Request) -> dict[str, object]:
    """Show the gallery for the active event."""
    kiosk = _kiosk(request)
    await kiosk.open_gallery()
    return _state(kiosk)


@router.post("/kiosk/admin")
async def open_admin(request: Request) -> dict[str, object]:
    """Show the PIN-gated admin screen."""
    kiosk = _kiosk(request)
    kiosk.open_admin()
    return _state(kiosk)


@router.post("/kiosk/home")
async def go_home(request: Request) -> dict[str, object]:
    """Return to LANDING from anywhere."""
    kiosk = _kiosk(request)
    await kiosk.go_home()
    return _state(kiosk)


@router.post("/kiosk/activity")
async def activity(request: Request) -> dict[str, object]:
    """Record guest interaction on an idle-timed screen."""
    kiosk = _kiosk(request)
    kiosk.touch()
    return _state(kiosk)


@router.post("/kiosk/concepts/{concept_id}")
async def select_concept(concept_id: str, request: Request) -> dict[str, object]:
    """Pick a concept and open the camera."""
    kiosk = _kiosk(request)
    await kiosk.select_concept(concept_id)
    return _state(kiosk)


@router.post("/kiosk/camera/retry")
async def retry_camera(request: Request) -> dict[str, object]:
    """Try to reacquire the camera after a hardware error."""
    kiosk = _kiosk(request)
    await kiosk.retry_camera()
    return _state(kiosk)


@router.post("/kiosk/capture", status_code=status.HTTP_202_ACCEPTED)
async def capture(request: Request) -> dict[str, object]:
    """Start the countdown; poll the state for progress."""
    kiosk = _kiosk(request)
    kiosk.start_capture()
    return _state(kiosk)


@router.post("/kiosk/capture/cancel")
async def cancel_capture(request: Request) -> dict[str, object]:
    """Stop the countdown without taking a picture."""
    kiosk = _kiosk(request)
    kiosk.cancel_countdown()
    return _state(kiosk)


@router.post("/kiosk/generation/cancel")
async def cancel_generation(request: Request) -> dict[str, object]:
    """Abandon the outstanding generation and return to the camera."""
    kiosk = _kiosk(request)
    await kiosk.cancel_generation()
    return _state(kiosk)


@router.get("/kiosk/camera/preview")
async def camera_preview(request: Request) -> Response:
    """Return the live feed as a cropped JPEG."""
    kiosk = _kiosk(request)
    if not kiosk.capture_engine.is_open:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return Response(
        content=await kiosk.capture_engine.preview_jpeg(), media_type="image/jpeg"
    )


@router.get("/kiosk/result")
async def result_image(request: Request) -> Response:
    """Return the generated image of the current session."""
    session = _kiosk(request).session
    if session is None or session.generated_image is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    image = session.generated_image
    return Response(content=image.image_bytes, media_type=image.mime_type)


@router.get("/gallery/{token}")
async def gallery_item(token: str, request: Request) -> dict[str, object]:
    """Fetch any historical gallery item by its share token."""
    container: AppContainer = request.app.state.container
    try:
        item = await container.gallery_service.get_by_token(token)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY) from exc
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return serialize_gallery_item(item)
