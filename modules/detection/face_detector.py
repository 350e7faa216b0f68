"""
MediaPipe Face Mesh wrapper producing FaceObservations for the eye bar.
"""

import logging
import numpy as np
import mediapipe as mp

from modules.detection.landmark_extractor import faces_from_results

logger = logging.getLogger(__name__)


class FaceDetector:
    """MediaPipe Face Mesh wrapper; one face by default."""

    def __init__(self, config: dict):
        self._max_faces = config.get("max_num_faces", 1)
        self._refine = config.get("refine_face_landmarks", False)
        self._min_detect_conf = config.get("min_detection_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)

        self._mesh = None
        self._initialized = False

    def initialize(self):
        """Initialize MediaPipe Face Mesh solution."""
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=self._max_faces,
            refine_landmarks=self._refine,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info("MediaPipe FaceMesh initialized (max_faces=%d, refine=%s)",
                    self._max_faces, self._refine)

    def detect(self, rgb_frame: np.ndarray) -> list:
        """Run face mesh on an RGB frame; returns a list of FaceObservation."""
        if not self._initialized:
            self.initialize()

        height, width = rgb_frame.shape[:2]
        rgb_frame.flags.writeable = False
        results = self._mesh.process(rgb_frame)
        rgb_frame.flags.writeable = True

        return faces_from_results(results, width, height)

    def close(self):
        """Release MediaPipe resources."""
        if self._mesh:
            self._mesh.close()
            self._mesh = None
            self._initialized = False
            logger.info("MediaPipe FaceMesh closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
