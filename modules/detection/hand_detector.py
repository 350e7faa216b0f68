"""
MediaPipe hand detection wrapper producing pixel-space HandObservations.
"""

import logging
import numpy as np
import mediapipe as mp

from modules.detection.landmark_extractor import hands_from_results

logger = logging.getLogger(__name__)


class HandDetector:
    """MediaPipe Hands wrapper optimized for real-time performance."""

    def __init__(self, config: dict, selfie_view: bool = True):
        self._model_complexity = config.get("model_complexity", 0)
        self._max_hands = config.get("max_num_hands", 2)
        self._min_detect_conf = config.get("min_detection_confidence", 0.5)
        self._min_track_conf = config.get("min_tracking_confidence", 0.5)
        self._selfie_view = selfie_view

        self._hands = None
        self._initialized = False

    def initialize(self):
        """Initialize MediaPipe Hands solution."""
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=self._max_hands,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        self._initialized = True
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, max_hands=%d, "
            "detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._max_hands,
            self._min_detect_conf, self._min_track_conf,
        )

    def detect(self, rgb_frame: np.ndarray) -> list:
        """Run hand detection on an RGB frame.

        Args:
            rgb_frame: Frame in RGB color space

        Returns:
            list of HandObservation in pixel coordinates
        """
        if not self._initialized:
            self.initialize()

        height, width = rgb_frame.shape[:2]

        # Set frame as non-writable for performance
        rgb_frame.flags.writeable = False
        results = self._hands.process(rgb_frame)
        rgb_frame.flags.writeable = True

        return hands_from_results(results, width, height, selfie_view=self._selfie_view)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands:
            self._hands.close()
            self._hands = None
            self._initialized = False
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
