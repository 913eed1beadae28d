"""Session state machine driving the kiosk screens."""

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from ai_photobooth.domain.concepts import Concept
from ai_photobooth.domain.errors import (
    ErrorReport,
    GenerationError,
    HardwareUnavailable,
    InvalidTransition,
    MissingCredential,
    StoreError,
)
from ai_photobooth.domain.gallery import GalleryItem
from ai_photobooth.domain.kiosk import AdminState, KioskSession, KioskState
from ai_photobooth.services.admin import AdminService
from ai_photobooth.services.capture import ASPECT_RATIOS, CaptureEngine, Countdown
from ai_photobooth.services.configuration import KioskConfiguration
from ai_photobooth.services.gallery import GalleryService
from ai_photobooth.services.generation import GenerationService
from ai_photobooth.services.idle_timer import IdleTimer

logger = logging.getLogger(__name__)

TRANSITIONS: dict[KioskState, frozenset[KioskState]] = {
    KioskState.LANDING: frozenset(
        {KioskState.THEMES, KioskState.GALLERY, KioskState.ADMIN}
    ),
    KioskState.THEMES: frozenset({KioskState.CAMERA, KioskState.LANDING}),
    KioskState.CAMERA: frozenset({KioskState.GENERATING, KioskState.LANDING}),
    KioskState.GENERATING: frozenset(
        {KioskState.RESULT, KioskState.CAMERA, KioskState.LANDING}
    ),
    KioskState.RESULT: frozenset({KioskState.LANDING}),
    KioskState.GALLERY: frozenset({KioskState.LANDING}),
    KioskState.ADMIN: frozenset({KioskState.LANDING}),
}
IDLE_TIMED_STATES = frozenset(
    {KioskState.RESULT, KioskState.GALLERY, KioskState.ADMIN}
)


@dataclass(frozen=True)
class KioskSnapshot:
    """Everything the display needs to render the current screen."""

    state: KioskState
    admin_state: AdminState
    concepts: tuple[Concept, ...]
    event_name: str
    event_description: str
    orientation: str
    camera_open: bool
    countdown_remaining: int | None
    capture_enabled: bool
    error: ErrorReport | None
    concept: Concept | None
    has_result: bool
    gallery_item: GalleryItem | None
    gallery_items: tuple[GalleryItem, ...]


@dataclass
class KioskStateMachine:
    """Single source of truth for what the kiosk is showing.

    Every suspension point records ``_epoch`` before awaiting and applies
    its result only if no transition happened meanwhile. Each transition
    bumps the epoch, and discarding a session is always a transition, so a
    stale camera, generation or store result can never reach a newer
    session.
    """

    configuration: KioskConfiguration
    capture_engine: CaptureEngine
    generation_service: GenerationService
    gallery_service: GalleryService
    admin_service: AdminService
    idle_timer: IdleTimer = field(default_factory=IdleTimer)
    countdown_seconds: int = 3
    state: KioskState = field(default=KioskState.LANDING, init=False)
    session: KioskSession | None = field(default=None, init=False)
    gallery_items: list[GalleryItem] = field(default_factory=list, init=False)
    gallery_error: ErrorReport | None = field(default=None, init=False)
    _epoch: int = field(default=0, init=False)
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)
    _generation: asyncio.Task | None = field(default=None, init=False)

    # Guest navigation

    async def start(self) -> None:
        """LANDING -> THEMES, picking up any admin edits first."""
        self._require(KioskState.LANDING)
        epoch = self._epoch
        await self.configuration.reload()
        if epoch != self._epoch:
            return
        self._transition(KioskState.THEMES)

    async def open_gallery(self) -> None:
        """LANDING -> GALLERY, listing the active event's items."""
        self._require(KioskState.LANDING)
        self._transition(KioskState.GALLERY)
        epoch = self._epoch
        event_id = self.configuration.settings.active_event_id
        try:
            items = await self.gallery_service.list_for_event(event_id)
        except StoreError as exc:
            if epoch == self._epoch:
                self.gallery_error = ErrorReport.from_exception(exc)
            return
        if epoch == self._epoch:
            self.gallery_items = items

    def open_admin(self) -> None:
        """LANDING -> ADMIN, always starting locked."""
        self._require(KioskState.LANDING)
        self.admin_service.reset()
        self._transition(KioskState.ADMIN)

    async def select_concept(self, concept_id: str) -> None:
        """THEMES -> CAMERA with a new session for ``concept_id``."""
        self._require(KioskState.THEMES)
        concept = self.configuration.find_concept(concept_id)
        self.session = KioskSession(id=uuid4(), concept=concept)
        self._transition(KioskState.CAMERA)
        logger.info("Session %s started with concept %s", self.session.id, concept.id)
        await self._open_camera()

    async def retry_camera(self) -> None:
        """Reopen the camera after a hardware error."""
        self._require(KioskState.CAMERA)
        if self.capture_engine.is_open:
            return
        await self._open_camera()

    def start_capture(self) -> None:
        """Begin the countdown; the rest of the flow runs in the background."""
        self._require(KioskState.CAMERA)
        session = self._session()
        if not self.capture_engine.is_open:
            raise InvalidTransition("Camera is not available")
        if self.capture_engine.countdown is not None:
            raise InvalidTransition("Capture already in progress")
        if self._generation is not None:
            raise InvalidTransition("A generation is still outstanding")
        session.error = None
        countdown = self.capture_engine.start_countdown(self.countdown_seconds)
        self._spawn(self._finish_capture(countdown, self._epoch))

    def cancel_countdown(self) -> None:
        """Stop a running countdown without capturing; the feed stays open."""
        self._require(KioskState.CAMERA)
        countdown = self.capture_engine.countdown
        if countdown is None:
            raise InvalidTransition("No countdown is running")
        countdown.cancel()

    async def cancel_generation(self) -> None:
        """GENERATING -> CAMERA, cancelling the outstanding call."""
        self._require(KioskState.GENERATING)
        session = self._session()
        session.captured_frame = None
        self._transition(KioskState.CAMERA)
        logger.info("Generation cancelled for session %s", session.id)
        await self._open_camera()

    async def go_home(self) -> None:
        """Any state -> LANDING, discarding the session."""
        if self.state is not KioskState.LANDING:
            self._transition(KioskState.LANDING)
        await self.configuration.reload()

    def touch(self) -> None:
        """Explicit user activity on an idle-timed screen re-arms the timer."""
        if self.state in IDLE_TIMED_STATES:
            self._arm_idle_timer()

    # Admin delegation, valid only on the ADMIN screen

    def admin(self) -> AdminService:
        """Return the admin service, re-arming the idle timer."""
        self._require(KioskState.ADMIN)
        self._arm_idle_timer()
        return self.admin_service

    # Observers

    def snapshot(self) -> KioskSnapshot:
        settings = self.configuration.settings
        session = self.session
        countdown = self.capture_engine.countdown
        return KioskSnapshot(
            state=self.state,
            admin_state=self.admin_service.state,
            concepts=self.configuration.concepts,
            event_name=settings.event_name,
            event_description=settings.event_description,
            orientation=settings.orientation.value,
            camera_open=self.capture_engine.is_open,
            countdown_remaining=countdown.remaining if countdown is not None else None,
            capture_enabled=(
                self.state is KioskState.CAMERA
                and self.capture_engine.is_open
                and countdown is None
                and self._generation is None
            ),
            error=session.error if session else self.gallery_error,
            concept=session.concept if session else None,
            has_result=bool(session and session.generated_image),
            gallery_item=session.gallery_item if session else None,
            gallery_items=tuple(self.gallery_items),
        )

    async def shutdown(self) -> None:
        """Release hardware and timers and wait for background work."""
        self.idle_timer.cancel()
        self.capture_engine.close_camera()
        self.session = None
        self._epoch += 1
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)

    # Background flow

    async def _finish_capture(self, countdown: Countdown, epoch: int) -> None:
        try:
            frame = await countdown.result()
        except HardwareUnavailable as exc:
            if epoch == self._epoch and self.session is not None:
                logger.warning("Capture failed: %s", exc)
                self.capture_engine.close_camera()
                self.session.error = ErrorReport.from_exception(exc)
            return
        if frame is None or epoch != self._epoch:
            return
        session = self._session()
        session.captured_frame = frame
        self._transition(KioskState.GENERATING)
        self._generation = asyncio.current_task()
        try:
            await self._generate(session)
        finally:
            if self._generation is asyncio.current_task():
                self._generation = None

    async def _generate(self, session: KioskSession) -> None:
        frame = session.captured_frame
        if frame is None:
            raise InvalidTransition("No captured frame to generate from")
        epoch = self._epoch
        aspect_ratio = ASPECT_RATIOS[self.configuration.settings.orientation]
        try:
            image = await self.generation_service.generate(
                frame, session.concept, aspect_ratio
            )
        except GenerationError as exc:
            if epoch != self._epoch:
                logger.info("Ignoring failure of a discarded generation: %s", exc)
                return
            if isinstance(exc, MissingCredential):
                logger.critical("Image generation is not configured: %s", exc)
            else:
                logger.warning("Generation failed: %s", exc)
            session.captured_frame = None
            session.error = ErrorReport.from_exception(exc)
            self._transition(KioskState.CAMERA)
            await self._open_camera()
            return
        if epoch != self._epoch:
            logger.warning("Discarding stale generation result for %s", session.id)
            return
        session.captured_frame = None
        session.generated_image = image
        self._transition(KioskState.RESULT)
        await self._register(session)

    async def _register(self, session: KioskSession) -> None:
        image = session.generated_image
        if image is None:
            return
        epoch = self._epoch
        try:
            item = await self.gallery_service.register(
                image,
                session.concept.name,
                self.configuration.settings.active_event_id,
            )
        except StoreError as exc:
            logger.warning("Gallery registration failed: %s", exc)
            if epoch == self._epoch:
                session.error = ErrorReport.from_exception(exc)
            return
        logger.info("Registered gallery item %s", item.id)
        if epoch == self._epoch:
            session.gallery_item = item

    async def _open_camera(self) -> None:
        session = self._session()
        epoch = self._epoch
        try:
            await self.capture_engine.open_camera(
                self.configuration.settings.orientation
            )
        except HardwareUnavailable as exc:
            logger.warning("Camera unavailable: %s", exc)
            if epoch == self._epoch:
                session.error = ErrorReport.from_exception(exc)
            return
        if epoch != self._epoch:
            # Navigated away while the camera was being acquired.
            self.capture_engine.close_camera()

    # Transition core

    def _transition(self, target: KioskState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.state} -> {target} is not allowed")
        if target is KioskState.GENERATING and (
            self.session is None or self.session.captured_frame is None
        ):
            raise InvalidTransition("GENERATING requires a captured frame")
        previous = self.state
        if previous is KioskState.CAMERA:
            self.capture_engine.close_camera()
        if previous is KioskState.GENERATING:
            self._abandon_generation()
        if target is KioskState.LANDING:
            self._discard_session()
        self.state = target
        self._epoch += 1
        if target in IDLE_TIMED_STATES:
            self._arm_idle_timer()
        else:
            self.idle_timer.cancel()
        logger.info("Kiosk %s -> %s", previous, target)

    def _abandon_generation(self) -> None:
        # The generation task leaves GENERATING itself and must not cancel itself.
        task, self._generation = self._generation, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _discard_session(self) -> None:
        self.capture_engine.close_camera()
        if self.session is not None:
            logger.info("Session %s discarded", self.session.id)
        self.session = None
        self.gallery_items = []
        self.gallery_error = None
        self.admin_service.logout()

    def _arm_idle_timer(self) -> None:
        epoch = self._epoch
        self.idle_timer.arm(
            self.configuration.settings.auto_reset_time,
            lambda: self._on_idle_timeout(epoch),
        )

    def _on_idle_timeout(self, epoch: int) -> None:
        if epoch != self._epoch or self.state not in IDLE_TIMED_STATES:
            return
        logger.info("Idle timeout on %s, returning to LANDING", self.state)
        self._transition(KioskState.LANDING)
        self._spawn(self.configuration.reload())

    def _spawn(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background kiosk task failed", exc_info=task.exception())

    def _require(self, state: KioskState) -> None:
        if self.state is not state:
            raise InvalidTransition(f"Not allowed while on {self.state}")

    def _session(self) -> KioskSession:
        if self.session is None:
            raise InvalidTransition("No active session")
        return self.session
