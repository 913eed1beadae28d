"""Dependency container wiring for the kiosk."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from ai_photobooth.adapters.httpx_store_client import HttpxKioskStoreClient
from ai_photobooth.adapters.json_local_config_repository import (
    JsonLocalConfigRepository,
)
from ai_photobooth.adapters.openai_image_client import OpenAIImageClient
from ai_photobooth.adapters.opencv_camera import OpenCvCamera
from ai_photobooth.config import Settings
from ai_photobooth.services.admin import AdminService
from ai_photobooth.services.capture import CaptureEngine
from ai_photobooth.services.configuration import KioskConfiguration
from ai_photobooth.services.gallery import GalleryService
from ai_photobooth.services.generation import GenerationService
from ai_photobooth.services.kiosk import KioskStateMachine
from ai_photobooth.services.local_config import LocalConfigService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    configuration: KioskConfiguration
    gallery_service: GalleryService
    generation_service: GenerationService
    local_config_service: LocalConfigService
    kiosk: KioskStateMachine
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    local_config_service = LocalConfigService(
        JsonLocalConfigRepository(Path(resolved_settings.local_config_path))
    )
    store_url = local_config_service.get_store_url(resolved_settings.store_base_url)
    if not store_url:
        logger.warning("No store URL configured; running on default settings")
    store_client = HttpxKioskStoreClient.create(
        store_url or "", timeout=resolved_settings.store_timeout_seconds
    )
    if resolved_settings.openai_api_key:
        image_client: OpenAIImageClient | None = OpenAIImageClient.create(
            resolved_settings.openai_api_key,
            timeout=resolved_settings.generation_timeout_seconds,
        )
    else:
        image_client = None
        logger.critical("OPENAI_API_KEY is not set; image generation is disabled")
    configuration = KioskConfiguration(store_client)
    gallery_service = GalleryService(store_client)
    generation_service = GenerationService(
        client=image_client, model=resolved_settings.openai_model
    )
    admin_service = AdminService(
        configuration=configuration,
        repository=store_client,
        local_config=local_config_service,
        store_endpoint=store_client,
    )
    kiosk = KioskStateMachine(
        configuration=configuration,
        capture_engine=CaptureEngine(
            open_device=partial(OpenCvCamera.open, resolved_settings.camera_index)
        ),
        generation_service=generation_service,
        gallery_service=gallery_service,
        admin_service=admin_service,
        countdown_seconds=resolved_settings.countdown_seconds,
    )

    async def close_resources() -> None:
        await kiosk.shutdown()
        await store_client.close()

    return AppContainer(
        settings=resolved_settings,
        configuration=configuration,
        gallery_service=gallery_service,
        generation_service=generation_service,
        local_config_service=local_config_service,
        kiosk=kiosk,
        close_resources=close_resources,
    )
