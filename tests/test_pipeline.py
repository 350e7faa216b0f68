"""
Tests for the frame pipeline and overlay rendering
===================================================
"""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.consent import ConsentTracker
from core.pipeline import Pipeline
from core.types import BarRect, ConsentFlags, FaceObservation, Handedness, Landmark
from modules.censor.eye_bar import LEFT_EYE_MESH, RIGHT_EYE_MESH
from modules.utils.config import ConsentConfig
from modules.utils.performance_monitor import PerformanceMonitor
from modules.visualization.overlay import Overlay


POINTING = {"index": 10, "middle": -5, "ring": -5, "pinky": -5}


class FakeCamera:
    """Serves blank frames, or nothing once exhausted."""

    def __init__(self, frames=1):
        self._remaining = frames
        self._frame_id = 0

    def read(self):
        if self._remaining <= 0:
            return None, None
        self._remaining -= 1
        self._frame_id += 1
        return self._frame_id, np.full((540, 960, 3), 200, dtype=np.uint8)


class FakeDetector:
    """Returns a scripted list of observations per call."""

    def __init__(self, *per_frame):
        self._per_frame = list(per_frame)
        self.calls = 0

    def detect(self, rgb):
        assert rgb.shape == (540, 960, 3)
        out = self._per_frame[min(self.calls, len(self._per_frame) - 1)] if self._per_frame else []
        self.calls += 1
        return out


def face_with_eyes():
    mesh = [Landmark(0.0, 0.0)] * 468
    for i in LEFT_EYE_MESH:
        mesh[i] = Landmark(400.0, 250.0)
    for i in RIGHT_EYE_MESH:
        mesh[i] = Landmark(560.0, 250.0)
    return FaceObservation(mesh=tuple(mesh))


def build_pipeline(hands, faces=None, frames=1):
    tracker = ConsentTracker(ConsentConfig())
    face_detector = FakeDetector(faces) if faces is not None else None
    return Pipeline(
        camera=FakeCamera(frames),
        hand_detector=FakeDetector(hands),
        face_detector=face_detector,
        tracker=tracker,
        overlay=Overlay({"show_dots": True}),
        performance_monitor=PerformanceMonitor(),
    )


class TestPipeline:
    """One tick: capture, detect, classify, render."""

    def test_no_hands_keeps_everything_hidden(self):
        pipeline = build_pipeline([], faces=[face_with_eyes()])
        result = pipeline.tick()

        assert result.frame is not None
        assert result.flags == ConsentFlags()
        assert result.eye_bar is not None and result.eye_bar.tracked
        assert result.face_count == 1
        assert result.hand_count == 0

    def test_open_palm_unblurs_but_keeps_bar(self, open_hand):
        pipeline = build_pipeline([open_hand], faces=[face_with_eyes()])
        result = pipeline.tick()

        assert result.flags.unblur
        assert not result.flags.consent
        assert result.eye_bar is not None

    def test_consent_removes_bar(self, open_hand, make_hand):
        pipeline = build_pipeline([open_hand, make_hand(POINTING)], faces=[face_with_eyes()])
        result = pipeline.tick()

        assert result.flags.consent
        assert result.eye_bar is None

    def test_no_face_detector_uses_fallback_bar(self):
        result = build_pipeline([]).tick()
        assert result.faces == []
        assert result.eye_bar is not None
        assert not result.eye_bar.tracked

    def test_missing_frame_returns_last_flags(self, open_hand):
        pipeline = build_pipeline([open_hand], frames=1)
        first = pipeline.tick()
        second = pipeline.tick()

        assert first.frame is not None
        assert second.frame is None
        assert second.flags == first.flags
        assert pipeline.frame_count == 1

    def test_records_stage_latencies(self):
        perf = PerformanceMonitor()
        pipeline = Pipeline(FakeCamera(3), FakeDetector([]), None,
                            ConsentTracker(), Overlay({}), perf)
        for _ in range(3):
            pipeline.tick()
        assert perf.frame_count == 3
        report = perf.get_report()
        for stage in ("capture", "detection", "consent", "render", "total"):
            assert stage in report["latencies_ms"]


class TestOverlay:
    """Drawing primitives on synthetic frames."""

    def test_blur_and_darken_dims_frame(self):
        frame = np.full((100, 100, 3), 255, dtype=np.uint8)
        Overlay({"overlay_alpha": 150}).blur_and_darken(frame)
        # uniform white: blur is a no-op, darkening leaves 255 * (1 - 150/255)
        assert frame.mean() == pytest.approx(105, abs=1)

    def test_even_blur_kernel_is_made_odd(self):
        frame = np.full((50, 50, 3), 100, dtype=np.uint8)
        Overlay({"blur_kernel": 10}).blur_and_darken(frame)

    def test_unblurred_frame_is_not_darkened(self):
        frame = np.full((540, 960, 3), 200, dtype=np.uint8)
        Overlay({}).render(frame, ConsentFlags(unblur=True))
        # bottom-right corner is clear of indicators
        assert (frame[500:, 900:] == 200).all()

    def test_blurred_frame_is_darkened(self):
        frame = np.full((540, 960, 3), 200, dtype=np.uint8)
        Overlay({}).render(frame, ConsentFlags())
        assert (frame[500:, 900:] < 200).all()

    def test_eye_bar_is_black(self):
        frame = np.full((200, 200, 3), 255, dtype=np.uint8)
        Overlay({}).draw_eye_bar(frame, BarRect(50, 80, 100, 20, radius=6))
        assert (frame[90, 100] == 0).all()
        assert (frame[10, 10] == 255).all()

    def test_dots_colored_by_handedness(self, make_hand):
        frame = np.zeros((540, 960, 3), dtype=np.uint8)
        overlay = Overlay({"dot_radius": 3})
        overlay.draw_hand_dots(frame, [make_hand(handedness=Handedness.RIGHT)], 0.1)
        assert tuple(frame[400, 320]) == (0, 255, 255)

        frame[:] = 0
        overlay.draw_hand_dots(frame, [make_hand(handedness=Handedness.LEFT)], 0.1)
        assert tuple(frame[400, 320]) == (255, 0, 255)

    def test_low_confidence_hand_not_drawn(self, make_hand):
        frame = np.zeros((540, 960, 3), dtype=np.uint8)
        Overlay({}).draw_hand_dots(frame, [make_hand(confidence=0.05)], 0.1)
        assert not frame.any()

    def test_indicator_tiles_reflect_flags(self):
        on = np.zeros((540, 960, 3), dtype=np.uint8)
        off = np.zeros((540, 960, 3), dtype=np.uint8)
        overlay = Overlay({"indicator": {"size": 90, "x": 12, "y": 12, "gap": 10}})
        overlay.draw_indicators(on, ConsentFlags(unblur=True, consent=True, pointing_active=True))
        overlay.draw_indicators(off, ConsentFlags())
        # tile centre edge, away from the label text
        assert tuple(on[20, 57]) == (60, 180, 60)
        assert tuple(off[20, 57]) == (50, 50, 200)

    def test_unreadable_icon_falls_back_to_tile(self, tmp_path):
        overlay = Overlay({"icons": {"consent": "missing.png"}}, base_dir=str(tmp_path))
        frame = np.zeros((540, 960, 3), dtype=np.uint8)
        overlay.draw_indicators(frame, ConsentFlags(consent=True, unblur=True))
        assert tuple(frame[20, 57]) == (60, 180, 60)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
