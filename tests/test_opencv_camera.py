"""Tests for the OpenCV camera adapter."""

import numpy as np
import pytest

from ai_photobooth.adapters import opencv_camera
from ai_photobooth.adapters.opencv_camera import OpenCvCamera
from ai_photobooth.domain.errors import HardwareUnavailable


class _FakeCapture:
    def __init__(self, opened: bool = True, frame: np.ndarray | None = None) -> None:
        self.opened = opened
        self.frame = frame
        self.props: dict[int, float] = {}
        self.released = False

    def isOpened(self) -> bool:  # noqa: N802
        return self.opened

    def set(self, prop: int, value: float) -> bool:
        self.props[prop] = value
        return True

    def read(self) -> tuple[bool, np.ndarray | None]:
        return self.frame is not None, self.frame

    def release(self) -> None:
        self.released = True


def test_open_requests_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeCapture(frame=np.zeros((4, 4, 3), dtype=np.uint8))
    monkeypatch.setattr(opencv_camera.cv2, "VideoCapture", lambda index: fake)

    camera = OpenCvCamera.open(0, 768, 1344)

    assert fake.props[opencv_camera.cv2.CAP_PROP_FRAME_WIDTH] == 768
    assert fake.props[opencv_camera.cv2.CAP_PROP_FRAME_HEIGHT] == 1344
    assert camera.read_frame().shape == (4, 4, 3)
    camera.release()
    assert fake.released


def test_open_failure_releases_and_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _FakeCapture(opened=False)
    monkeypatch.setattr(opencv_camera.cv2, "VideoCapture", lambda index: fake)

    with pytest.raises(HardwareUnavailable):
        OpenCvCamera.open(1, 1344, 768)

    assert fake.released


def test_failed_read_raises() -> None:
    camera = OpenCvCamera(capture=_FakeCapture(frame=None))  # type: ignore[arg-type]

    with pytest.raises(HardwareUnavailable):
        camera.read_frame()
