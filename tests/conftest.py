"""Shared test fixtures."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

import numpy as np
import pytest

from ai_photobooth.config import Settings
from ai_photobooth.containers import AppContainer
from ai_photobooth.domain.concepts import (
    DEFAULT_SETTINGS,
    Concept,
    EventRecord,
    KioskSettings,
)
from ai_photobooth.domain.errors import (
    HardwareUnavailable,
    StoreUnreachable,
    Unauthorized,
)
from ai_photobooth.domain.gallery import GalleryItem
from ai_photobooth.domain.kiosk import KioskState
from ai_photobooth.services.admin import AdminService
from ai_photobooth.services.capture import CameraDevice, CaptureEngine
from ai_photobooth.services.configuration import (
    KioskConfiguration,
    SettingsRepository,
)
from ai_photobooth.services.gallery import GalleryRepository, GalleryService
from ai_photobooth.services.generation import (
    GenerationCandidate,
    GenerationService,
    ImageGenerationClient,
)
from ai_photobooth.services.kiosk import KioskStateMachine
from ai_photobooth.services.local_config import (
    LocalConfigRepository,
    LocalConfigService,
)

CYBERPUNK = Concept(
    id="c1",
    name="cyberpunk portrait",
    prompt="cyberpunk portrait",
    thumbnail="https://example.test/c1.png",
)
WATERCOLOR = Concept(
    id="c2",
    name="watercolor",
    prompt="soft watercolor painting",
    thumbnail="https://example.test/c2.png",
)


@dataclass
class FakeCamera(CameraDevice):
    """Camera that returns a fixed-size synthetic frame."""

    width: int = 640
    height: int = 480
    fail_reads: bool = False
    released: bool = False
    reads: int = 0

    def read_frame(self) -> np.ndarray:
        if self.fail_reads or self.released:
            raise HardwareUnavailable("Camera stopped delivering frames")
        self.reads += 1
        return np.full((self.height, self.width, 3), 128, dtype=np.uint8)

    def release(self) -> None:
        self.released = True


@dataclass
class FakeCameraOpener:
    """Callable camera opener that records every device it hands out."""

    width: int = 640
    height: int = 480
    fail: bool = False
    devices: list[FakeCamera] = field(default_factory=list)
    requested: list[tuple[int, int]] = field(default_factory=list)

    def __call__(self, width: int, height: int) -> FakeCamera:
        self.requested.append((width, height))
        if self.fail:
            raise HardwareUnavailable("Permission denied")
        device = FakeCamera(width=self.width, height=self.height)
        self.devices.append(device)
        return device

    @property
    def open_devices(self) -> list[FakeCamera]:
        return [device for device in self.devices if not device.released]


@dataclass
class FakeImageClient(ImageGenerationClient):
    """Generation client returning canned candidates.

    When ``gate`` is set the call blocks until the event is set, which lets
    tests act while a generation is outstanding.
    """

    candidates: list[GenerationCandidate] = field(
        default_factory=lambda: [
            GenerationCandidate(text="Here is your portrait"),
            GenerationCandidate(image_bytes=b"\x89PNG-generated"),
        ]
    )
    error: Exception | None = None
    gate: asyncio.Event | None = None
    calls: list[dict[str, str]] = field(default_factory=list)
    outstanding: int = 0
    peak_outstanding: int = 0

    async def generate(
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        size: str,
    ) -> list[GenerationCandidate]:
        self.calls.append(
            {
                "model": model,
                "prompt": prompt,
                "image_data_url": image_data_url,
                "size": size,
            }
        )
        self.outstanding += 1
        self.peak_outstanding = max(self.peak_outstanding, self.outstanding)
        try:
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.outstanding -= 1
        if self.error is not None:
            raise self.error
        return list(self.candidates)


@dataclass
class InMemoryKioskStore(SettingsRepository, GalleryRepository):
    """In-memory stand-in for the remote store, validating PINs like it."""

    settings: KioskSettings = DEFAULT_SETTINGS
    concepts: list[Concept] = field(default_factory=lambda: [CYBERPUNK, WATERCOLOR])
    events: list[EventRecord] = field(default_factory=list)
    items: list[GalleryItem] = field(default_factory=list)
    unreachable: bool = False
    ignore_event_filter: bool = False
    base_url: str = "https://store.example.test"
    load_count: int = 0
    saved_settings: list[KioskSettings] = field(default_factory=list)
    saved_concepts: list[list[Concept]] = field(default_factory=list)
    overlays: list[bytes] = field(default_factory=list)
    write_gate: asyncio.Event | None = None

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url

    async def load_settings(self) -> KioskSettings:
        self._check_reachable()
        self.load_count += 1
        return self.settings

    async def load_concepts(self) -> list[Concept]:
        self._check_reachable()
        return list(self.concepts)

    async def save_settings(self, settings: KioskSettings, pin: str) -> None:
        self._check_pin(pin)
        if self.write_gate is not None:
            await self.write_gate.wait()
        self.settings = settings
        self.saved_settings.append(settings)

    async def save_concepts(self, concepts: list[Concept], pin: str) -> None:
        self._check_pin(pin)
        self.concepts = list(concepts)
        self.saved_concepts.append(list(concepts))

    async def upload_overlay(
        self, image_bytes: bytes, mime_type: str, pin: str
    ) -> str:
        self._check_pin(pin)
        self.overlays.append(image_bytes)
        return f"https://store.example.test/overlay/{len(self.overlays)}.png"

    async def list_events(self) -> list[EventRecord]:
        self._check_reachable()
        return list(self.events)

    async def create_event(
        self, name: str, description: str, folder_id: str, pin: str
    ) -> EventRecord:
        self._check_pin(pin)
        self.events = [replace(event, is_active=False) for event in self.events]
        event = EventRecord(
            id=f"evt-{len(self.events) + 1}",
            name=name,
            description=description,
            folder_id=folder_id,
            created_at=datetime.now(tz=UTC).isoformat(),
            is_active=True,
        )
        self.events.append(event)
        self.settings = replace(self.settings, active_event_id=event.id)
        return event

    async def register_item(  # noqa: PLR0913
        self,
        *,
        token: str,
        concept_name: str,
        event_id: str | None,
        image_bytes: bytes,
        mime_type: str,
    ) -> GalleryItem:
        self._check_reachable()
        item = GalleryItem(
            id=str(uuid4()),
            created_at=datetime.now(tz=UTC).isoformat(),
            concept_name=concept_name,
            image_url=f"https://store.example.test/images/{token}.png",
            download_url=f"https://store.example.test/download/{token}",
            token=token,
            event_id=event_id,
        )
        self.items.append(item)
        return item

    async def list_items(self, event_id: str | None) -> list[GalleryItem]:
        self._check_reachable()
        if event_id is None or self.ignore_event_filter:
            return list(self.items)
        return [item for item in self.items if item.event_id == event_id]

    async def get_item(self, token: str) -> GalleryItem | None:
        self._check_reachable()
        for item in self.items:
            if item.token == token:
                return item
        return None

    def _check_reachable(self) -> None:
        if self.unreachable:
            raise StoreUnreachable("Store is offline")

    def _check_pin(self, pin: str) -> None:
        self._check_reachable()
        if pin != self.settings.admin_pin:
            raise Unauthorized("PIN rejected")


@dataclass
class InMemoryLocalConfigRepository(LocalConfigRepository):
    """In-memory local config storage."""

    values: dict[str, object] = field(default_factory=dict)

    def load(self) -> dict[str, object]:
        return dict(self.values)

    def save(self, values: dict[str, object]) -> None:
        self.values = dict(values)


@dataclass
class KioskHarness:
    """A kiosk wired to fakes, plus handles on the fakes."""

    kiosk: KioskStateMachine
    store: InMemoryKioskStore
    image_client: FakeImageClient
    camera: FakeCameraOpener
    local_config: InMemoryLocalConfigRepository


def build_harness(
    *,
    store: InMemoryKioskStore | None = None,
    image_client: FakeImageClient | None = None,
    camera: FakeCameraOpener | None = None,
    with_credential: bool = True,
    countdown_seconds: int = 3,
) -> KioskHarness:
    store = store or InMemoryKioskStore()
    image_client = image_client or FakeImageClient()
    camera = camera or FakeCameraOpener()
    local_config = InMemoryLocalConfigRepository()
    configuration = KioskConfiguration(store)
    kiosk = KioskStateMachine(
        configuration=configuration,
        capture_engine=CaptureEngine(open_device=camera, tick_seconds=0.001),
        generation_service=GenerationService(
            client=image_client if with_credential else None, model="test-model"
        ),
        gallery_service=GalleryService(store),
        admin_service=AdminService(
            configuration=configuration,
            repository=store,
            local_config=LocalConfigService(local_config),
            store_endpoint=store,
        ),
        countdown_seconds=countdown_seconds,
    )
    return KioskHarness(
        kiosk=kiosk,
        store=store,
        image_client=image_client,
        camera=camera,
        local_config=local_config,
    )


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it holds or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


async def wait_for_state(kiosk: KioskStateMachine, state: KioskState) -> None:
    await wait_for(lambda: kiosk.state is state)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        store_base_url="https://store.example.test",
        openai_api_key="openai-key",
        local_config_path=str(tmp_path / "local.json"),
        _env_file=None,
    )


@pytest.fixture
def harness() -> KioskHarness:
    return build_harness()


@pytest.fixture
def container(settings: Settings, harness: KioskHarness) -> AppContainer:
    kiosk = harness.kiosk

    async def close_resources() -> None:
        await kiosk.shutdown()

    return AppContainer(
        settings=settings,
        configuration=kiosk.configuration,
        gallery_service=kiosk.gallery_service,
        generation_service=kiosk.generation_service,
        local_config_service=kiosk.admin_service.local_config,
        kiosk=kiosk,
        close_resources=close_resources,
    )
