"""OpenCV-backed camera device."""

from dataclasses import dataclass

import cv2
import numpy as np

from ai_photobooth.domain.errors import HardwareUnavailable
from ai_photobooth.services.capture import CameraDevice


@dataclass
class OpenCvCamera(CameraDevice):
    """Camera device wrapping ``cv2.VideoCapture``."""

    capture: cv2.VideoCapture

    @classmethod
    def open(cls, index: int, width: int, height: int) -> "OpenCvCamera":
        """Open camera ``index`` asking for ``width`` x ``height`` frames.

        The driver may ignore the requested size; frames are cropped to the
        target aspect ratio after capture.
        """
        capture = cv2.VideoCapture(index)
        if not capture.isOpened():
            capture.release()
            raise HardwareUnavailable(f"Could not open camera {index}")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        return cls(capture=capture)

    def read_frame(self) -> np.ndarray:
        """Read the next frame from the device."""
        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise HardwareUnavailable("Camera stopped delivering frames")
        return frame

    def release(self) -> None:
        """Release the device handle."""
        self.capture.release()
