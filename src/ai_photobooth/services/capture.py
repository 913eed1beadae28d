"""Camera acquisition, countdown and fixed-aspect still capture."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import cv2
import numpy as np

from ai_photobooth.domain.capture import CapturedFrame
from ai_photobooth.domain.concepts import Orientation
from ai_photobooth.domain.errors import HardwareUnavailable

logger = logging.getLogger(__name__)

TARGET_DIMENSIONS: dict[Orientation, tuple[int, int]] = {
    Orientation.PORTRAIT: (768, 1344),
    Orientation.LANDSCAPE: (1344, 768),
}
ASPECT_RATIOS: dict[Orientation, str] = {
    Orientation.PORTRAIT: "9:16",
    Orientation.LANDSCAPE: "16:9",
}
JPEG_MIME_TYPE = "image/jpeg"


class CameraDevice(Protocol):
    """A live camera feed."""

    def read_frame(self) -> np.ndarray:
        """Return the latest BGR frame or raise ``HardwareUnavailable``."""

    def release(self) -> None:
        """Release the underlying hardware handle."""


CameraOpener = Callable[[int, int], CameraDevice]


def crop_to_aspect(
    frame: np.ndarray, target_width: int, target_height: int
) -> np.ndarray:
    """Center-crop ``frame`` to the target ratio and scale it to the target size."""
    height, width = frame.shape[:2]
    if width == 0 or height == 0:
        raise HardwareUnavailable("Camera returned an empty frame")
    target_ratio = target_width / target_height
    if width / height > target_ratio:
        source_width = max(1, round(height * target_ratio))
        left = (width - source_width) // 2
        cropped = frame[:, left : left + source_width]
    else:
        source_height = max(1, round(width / target_ratio))
        top = (height - source_height) // 2
        cropped = frame[top : top + source_height, :]
    return cv2.resize(
        cropped, (target_width, target_height), interpolation=cv2.INTER_AREA
    )


def encode_jpeg(frame: np.ndarray, quality: int) -> bytes:
    """Encode a BGR frame as JPEG bytes."""
    ok, encoded = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise HardwareUnavailable("Failed to encode camera frame")
    return encoded.tobytes()


class Countdown:
    """Ticking countdown that captures a frame when it reaches zero.

    Cancelling it stops the ticking and produces no frame; the camera feed
    it reads from stays open.
    """

    def __init__(
        self,
        seconds: int,
        tick_seconds: float,
        capture: Callable[[], Awaitable[CapturedFrame]],
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self.remaining = seconds
        self._tick_seconds = tick_seconds
        self._capture = capture
        self._on_tick = on_tick
        self._task = asyncio.create_task(self._run())

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        self._task.cancel()

    async def result(self) -> CapturedFrame | None:
        """Wait for the frame; ``None`` when the countdown was cancelled."""
        try:
            return await self._task
        except asyncio.CancelledError:
            if self._task.cancelled():
                return None
            raise

    async def _run(self) -> CapturedFrame:
        while self.remaining > 0:
            if self._on_tick is not None:
                self._on_tick(self.remaining)
            await asyncio.sleep(self._tick_seconds)
            self.remaining -= 1
        return await self._capture()


@dataclass
class CaptureEngine:
    """Owns the camera feed and the countdown for the current session."""

    open_device: CameraOpener
    tick_seconds: float = 1.0
    jpeg_quality: int = 85
    _device: CameraDevice | None = field(default=None, init=False)
    _orientation: Orientation = field(default=Orientation.PORTRAIT, init=False)
    _countdown: Countdown | None = field(default=None, init=False)
    _read_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def is_open(self) -> bool:
        return self._device is not None

    @property
    def countdown(self) -> Countdown | None:
        if self._countdown is not None and self._countdown.active:
            return self._countdown
        return None

    async def open_camera(self, orientation: Orientation) -> CameraDevice:
        """Acquire the camera at the resolution of ``orientation``."""
        self.close_camera()
        width, height = TARGET_DIMENSIONS[orientation]
        try:
            device = await asyncio.to_thread(self.open_device, width, height)
        except cv2.error as exc:
            raise HardwareUnavailable(f"Camera failed to open: {exc}") from exc
        self._device = device
        self._orientation = orientation
        logger.info("Camera opened for %s capture", orientation.value)
        return device

    def start_countdown(
        self, seconds: int, on_tick: Callable[[int], None] | None = None
    ) -> Countdown:
        """Start a countdown that ends with a cropped still frame."""
        if self._device is None:
            raise HardwareUnavailable("Camera is not open")
        if self.countdown is not None:
            raise RuntimeError("A countdown is already running")
        self._countdown = Countdown(
            seconds=seconds,
            tick_seconds=self.tick_seconds,
            capture=self.capture_still,
            on_tick=on_tick,
        )
        return self._countdown

    async def capture_still(self) -> CapturedFrame:
        """Grab one frame and crop it to the target dimensions."""
        width, height = TARGET_DIMENSIONS[self._orientation]
        cropped = crop_to_aspect(await self._read(), width, height)
        return CapturedFrame(
            image_bytes=encode_jpeg(cropped, self.jpeg_quality),
            mime_type=JPEG_MIME_TYPE,
            width=width,
            height=height,
            captured_at=datetime.now(tz=UTC),
        )

    async def preview_jpeg(self) -> bytes:
        """Return the current feed, cropped as it would be captured."""
        width, height = TARGET_DIMENSIONS[self._orientation]
        frame = crop_to_aspect(await self._read(), width, height)
        return encode_jpeg(frame, 70)

    def close_camera(self) -> None:
        """Cancel any countdown and release the camera."""
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        device, self._device = self._device, None
        if device is not None:
            device.release()
            logger.info("Camera released")

    async def _read(self) -> np.ndarray:
        device = self._device
        if device is None:
            raise HardwareUnavailable("Camera is not open")
        async with self._read_lock:
            try:
                return await asyncio.to_thread(device.read_frame)
            except cv2.error as exc:
                raise HardwareUnavailable(f"Camera read failed: {exc}") from exc
