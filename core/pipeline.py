"""
Per-frame orchestrator for the consent demo.

Architecture:
    Camera -> (BGR -> RGB) -> HandDetector + FaceDetector
    -> ConsentTracker -> eye bar placement -> Overlay

One tick runs synchronously per rendered frame. The classifier always
works on the observations detected from that same frame.
"""

import time
import logging
import cv2

from core.consent import ConsentTracker
from core.types import ConsentFlags
from modules.censor.eye_bar import eye_bar_rect

logger = logging.getLogger(__name__)


class PipelineResult:
    """Result of a single pipeline iteration."""

    __slots__ = (
        "frame", "frame_id", "flags", "hands", "faces",
        "eye_bar", "latency_ms", "timestamp",
    )

    def __init__(self):
        self.frame = None
        self.frame_id = 0
        self.flags = ConsentFlags()
        self.hands = []
        self.faces = []
        self.eye_bar = None
        self.latency_ms = 0.0
        self.timestamp = 0.0

    @property
    def hand_count(self) -> int:
        return len(self.hands)

    @property
    def face_count(self) -> int:
        return len(self.faces)


class Pipeline:
    """Capture, detect, classify and render, once per call to tick()."""

    def __init__(
        self,
        camera,
        hand_detector,
        face_detector,
        tracker: ConsentTracker,
        overlay,
        performance_monitor,
    ):
        self._camera = camera
        self._hand_detector = hand_detector
        self._face_detector = face_detector
        self._tracker = tracker
        self._overlay = overlay
        self._perf = performance_monitor
        self._frame_count = 0

    def tick(self) -> PipelineResult:
        """Execute one full pipeline iteration.

        Returns:
            PipelineResult; ``frame`` is None when the camera gave no frame
        """
        result = PipelineResult()
        result.timestamp = time.time()

        with self._perf.measure("total"):
            with self._perf.measure("capture"):
                frame_id, frame = self._camera.read()

            if frame is None:
                result.flags = self._tracker.flags
                return result

            result.frame_id = frame_id
            self._frame_count += 1

            with self._perf.measure("detection"):
                rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                result.hands = self._hand_detector.detect(rgb)
                result.faces = self._face_detector.detect(rgb) if self._face_detector else []

            with self._perf.measure("consent"):
                result.flags = self._tracker.update(result.hands)

            with self._perf.measure("render"):
                h, w = frame.shape[:2]
                if not result.flags.consent:
                    result.eye_bar = eye_bar_rect(result.faces, w, h)
                result.frame = self._overlay.render(
                    frame,
                    result.flags,
                    hands=result.hands,
                    bar=result.eye_bar,
                    min_confidence=self._tracker.config.hand_confidence,
                    fps=self._perf.fps,
                )

        self._perf.tick()
        result.latency_ms = self._perf.total_latency_ms
        return result

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def flags(self) -> ConsentFlags:
        return self._tracker.flags
