"""
Webcam capture through OpenCV with optional selfie-view mirroring.

Frames are read synchronously, once per tick of the frame loop.
"""

import time
import logging
import cv2

logger = logging.getLogger(__name__)


class CameraManager:
    """Opens a camera, applies the requested size and mirrors frames."""

    def __init__(self, config: dict):
        self._device_id = config.get("device_id", 0)
        self._width = config.get("width", 960)
        self._height = config.get("height", 540)
        self._backend = config.get("backend", "auto")
        self._flip_h = config.get("flip_horizontal", True)
        self._warmup_frames = config.get("warmup_frames", 5)

        self._cap = None
        self._frame_id = 0
        self._capture_times = []

    def open(self) -> bool:
        """Open the camera and request the configured resolution."""
        backend_map = {
            "v4l2": cv2.CAP_V4L2,
            "dshow": cv2.CAP_DSHOW,
            "msmf": cv2.CAP_MSMF,
            "auto": cv2.CAP_ANY,
        }
        backend = backend_map.get(self._backend, cv2.CAP_ANY)

        self._cap = cv2.VideoCapture(self._device_id, backend)
        if not self._cap.isOpened():
            logger.error("Failed to open camera %d with backend %s", self._device_id, self._backend)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)

        actual_w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(
            "Camera opened: %dx%d (requested %dx%d, mirrored=%s)",
            actual_w, actual_h, self._width, self._height, self._flip_h,
        )

        # Let auto-exposure settle
        for _ in range(self._warmup_frames):
            self._cap.read()

        return True

    def read(self):
        """Read the next frame, resized to the configured size.

        Returns:
            tuple: (frame_id, BGR numpy array) or (None, None)
        """
        if self._cap is None:
            return None, None

        start = time.perf_counter()
        ret, frame = self._cap.read()
        elapsed_ms = (time.perf_counter() - start) * 1000

        if not ret or frame is None:
            return None, None

        if frame.shape[1] != self._width or frame.shape[0] != self._height:
            frame = cv2.resize(frame, (self._width, self._height))
        if self._flip_h:
            frame = cv2.flip(frame, 1)

        self._frame_id += 1
        self._capture_times.append(elapsed_ms)
        if len(self._capture_times) > 100:
            self._capture_times = self._capture_times[-100:]
        return self._frame_id, frame

    @property
    def avg_capture_time_ms(self) -> float:
        """Average frame capture time in ms."""
        if not self._capture_times:
            return 0.0
        return sum(self._capture_times) / len(self._capture_times)

    @property
    def resolution(self) -> tuple:
        return (self._width, self._height)

    @property
    def mirrored(self) -> bool:
        return self._flip_h

    @property
    def is_open(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def stop(self):
        """Release the camera."""
        if self._cap:
            self._cap.release()
            self._cap = None
        logger.info("Camera stopped")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.stop()
