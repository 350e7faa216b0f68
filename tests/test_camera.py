"""
Tests for Camera Capture Module
================================
Uses a fake VideoCapture so no device is needed.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from modules.capture import camera_manager
from modules.capture.camera_manager import CameraManager


class FakeCapture:
    """Minimal cv2.VideoCapture stand-in serving a left/right split frame."""

    def __init__(self, device_id, backend, opened=True, frames=10, shape=(480, 640)):
        self.device_id = device_id
        self.backend = backend
        self._opened = opened
        self._frames = frames
        self._shape = shape
        self.props = {}
        self.released = False

    def isOpened(self):
        return self._opened and not self.released

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        return self.props.get(prop, 0)

    def read(self):
        if self._frames <= 0:
            return False, None
        self._frames -= 1
        h, w = self._shape
        frame = np.zeros((h, w, 3), dtype=np.uint8)
        frame[:, : w // 2] = 255  # left half white
        return True, frame

    def release(self):
        self.released = True


@pytest.fixture
def fake_capture(monkeypatch):
    created = []

    def factory(device_id, backend, **kwargs):
        cap = FakeCapture(device_id, backend, **kwargs)
        created.append(cap)
        return cap

    monkeypatch.setattr(camera_manager.cv2, "VideoCapture", factory)
    return created


class TestCameraManager:
    """Test camera capture functionality."""

    def test_read_before_open(self):
        cam = CameraManager({})
        assert cam.read() == (None, None)
        assert not cam.is_open

    def test_open_requests_resolution(self, fake_capture):
        cam = CameraManager({"device_id": 3, "width": 960, "height": 540, "warmup_frames": 0})
        assert cam.open()
        cap = fake_capture[0]
        assert cap.device_id == 3
        assert cap.props[camera_manager.cv2.CAP_PROP_FRAME_WIDTH] == 960
        assert cap.props[camera_manager.cv2.CAP_PROP_FRAME_HEIGHT] == 540
        assert cam.is_open

    def test_frames_resized_and_mirrored(self, fake_capture):
        cam = CameraManager({"width": 320, "height": 240, "flip_horizontal": True,
                             "warmup_frames": 0})
        cam.open()
        frame_id, frame = cam.read()
        assert frame_id == 1
        assert frame.shape == (240, 320, 3)
        # white half moved to the right
        assert frame[:, -1].min() == 255
        assert frame[:, 0].max() == 0

    def test_no_flip(self, fake_capture):
        cam = CameraManager({"width": 640, "height": 480, "flip_horizontal": False,
                             "warmup_frames": 0})
        cam.open()
        _, frame = cam.read()
        assert frame[:, 0].min() == 255
        assert not cam.mirrored

    def test_frame_ids_increase(self, fake_capture):
        cam = CameraManager({"warmup_frames": 2})
        cam.open()
        ids = [cam.read()[0] for _ in range(3)]
        assert ids == [1, 2, 3]
        assert cam.avg_capture_time_ms >= 0.0

    def test_exhausted_source(self, fake_capture):
        cam = CameraManager({"warmup_frames": 10})
        cam.open()
        assert cam.read() == (None, None)

    def test_open_failure(self, monkeypatch):
        monkeypatch.setattr(
            camera_manager.cv2, "VideoCapture",
            lambda device_id, backend: FakeCapture(device_id, backend, opened=False),
        )
        cam = CameraManager({})
        assert not cam.open()
        assert cam.read() == (None, None)

    def test_context_manager_releases(self, fake_capture):
        with CameraManager({"warmup_frames": 0}) as cam:
            assert cam.is_open
        assert fake_capture[0].released
        assert not cam.is_open

    def test_resolution(self):
        cam = CameraManager({"width": 1280, "height": 720})
        assert cam.resolution == (1280, 720)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
