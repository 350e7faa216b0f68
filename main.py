#!/usr/bin/env python3
"""
Consent Cam - gesture-gated webcam demo.

The video stays blurred until an open palm is shown, and an eye-censor bar
stays up until a pointing finger is also shown. Both gestures are needed;
order does not matter, but consent is only granted while the palm is
confirmed.

Usage:
    python main.py                    # Default camera and config
    python main.py --camera 1         # Another camera
    python main.py --no-dots          # Hide hand keypoint dots
    python main.py --config my.yaml   # Custom config
"""

import sys
import os
import signal
import argparse
import time
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from modules.utils.config import Config
from modules.utils.logger import setup_logging, ConsentLogger
from modules.utils.performance_monitor import PerformanceMonitor
from modules.capture.camera_manager import CameraManager
from modules.detection.hand_detector import HandDetector
from modules.detection.face_detector import FaceDetector
from modules.visualization.overlay import Overlay

from core.consent import ConsentTracker
from core.events import EventBus, Events
from core.pipeline import Pipeline

logger = logging.getLogger(__name__)

_QUIT_KEYS = (ord("q"), 27)
_MISSED_FRAME_WAIT_S = 0.01


class ConsentCam:
    """Wires capture, detection, consent tracking and rendering together."""

    def __init__(self, config: Config):
        self._config = config
        self._running = False

        self._bus = EventBus()
        self._consent_logger = ConsentLogger()

        self._camera = CameraManager(config.camera)
        selfie_view = config.get("camera.flip_horizontal", True)
        self._hand_detector = HandDetector(config.mediapipe, selfie_view=selfie_view)
        self._face_detector = FaceDetector(config.mediapipe)

        self._tracker = ConsentTracker(config.consent, event_bus=self._bus)
        self._overlay = Overlay(config.visualization, base_dir=config.base_dir)
        self._perf = PerformanceMonitor(
            window_size=config.get("performance.metrics_window", 100)
        )

        self._pipeline = Pipeline(
            camera=self._camera,
            hand_detector=self._hand_detector,
            face_detector=self._face_detector,
            tracker=self._tracker,
            overlay=self._overlay,
            performance_monitor=self._perf,
        )

        self._bus.subscribe(Events.UNBLUR_CHANGED, self._consent_logger.handler("unblur"))
        self._bus.subscribe(Events.POINTING_CHANGED, self._consent_logger.handler("pointing"))
        self._bus.subscribe(Events.CONSENT_CHANGED, self._consent_logger.handler("consent"))

        logger.info("ConsentCam initialized (%s)", config.consent)

    def start(self) -> bool:
        """Open the camera and run until quit; False if the camera failed or was lost."""
        if not self._camera.open():
            logger.error("Failed to open camera. Check connection and permissions.")
            self._bus.emit(Events.CAMERA_ERROR, device=self._config.get("camera.device_id"))
            return False

        self._hand_detector.initialize()
        self._face_detector.initialize()

        self._running = True
        self._bus.emit(Events.SYSTEM_STARTED)
        logger.info("Starting main loop (press q or ESC to quit)")
        try:
            camera_ok = self._run_main_loop()
        finally:
            self._shutdown()
        return camera_ok

    def _run_main_loop(self) -> bool:
        """Render until quit; returns False if the camera stopped giving frames."""
        window_name = self._config.get("visualization.window_name", "Consent Cam")
        show = self._config.get("visualization.enabled", True)
        max_missed = max(1, int(self._config.get("camera.max_missed_frames", 150)))
        missed = 0

        while self._running:
            result = self._pipeline.tick()
            if result.frame is None:
                missed += 1
                if missed >= max_missed:
                    logger.error("Camera gave no frame %d times in a row, stopping", missed)
                    self._bus.emit(Events.CAMERA_ERROR,
                                   device=self._config.get("camera.device_id"))
                    self._running = False
                    return False
                time.sleep(_MISSED_FRAME_WAIT_S)
            else:
                missed = 0
                if show:
                    cv2.imshow(window_name, result.frame)

            # Keys stay responsive while the camera is stalled
            key = cv2.waitKey(1) & 0xFF
            if key in _QUIT_KEYS:
                self._running = False
            elif key == ord("r"):
                self._tracker.reset()
                logger.info("Consent state reset")
            elif key == ord("p"):
                self._perf.print_report()
        return True

    def _shutdown(self):
        """Clean shutdown of all modules."""
        logger.info("Shutting down...")
        self._running = False
        self._camera.stop()
        self._hand_detector.close()
        self._face_detector.close()
        cv2.destroyAllWindows()

        self._perf.print_report()
        logger.info("Consent granted %d time(s) this session",
                    self._consent_logger.count("consent", True))
        self._bus.emit(Events.SYSTEM_SHUTDOWN)
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Consent Cam - gesture-gated webcam blur and eye censor"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--no-dots", action="store_true",
        help="Do not draw hand keypoint dots"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Override logging level (DEBUG, INFO, ...)"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    config = Config()
    config.load(config_path=args.config)

    if args.camera is not None:
        config.set("camera.device_id", args.camera)
    if args.no_dots:
        config.set("visualization.show_dots", False)

    log_cfg = config.get_section("logging")
    setup_logging(
        level=args.log_level or log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    app = ConsentCam(config)

    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.start() else 1


if __name__ == "__main__":
    sys.exit(main())
