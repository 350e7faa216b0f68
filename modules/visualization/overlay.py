"""
Renders the consent effects onto the camera frame: keypoint dots, the
blur/darken layer, the eye-censor bar and the three status indicators.
"""

import os
import logging
import cv2
import numpy as np

from core.types import BarRect, ConsentFlags, Handedness
from modules.utils.logger import log_timing

logger = logging.getLogger(__name__)

# BGR
_COLOR_LEFT = (255, 0, 255)
_COLOR_RIGHT = (0, 255, 255)
_COLOR_YES = (60, 180, 60)
_COLOR_NO = (50, 50, 200)
_COLOR_BAR = (0, 0, 0)

# (icon when on, icon when off, label) per indicator slot, left to right
_INDICATORS = (
    ("consent", "no_consent", "CONSENT"),
    ("palm_yes", "palm_no", "PALM"),
    ("point_yes", "point_no", "POINT"),
)


class Overlay:
    """Draws the consent overlay in place on a BGR frame."""

    def __init__(self, config: dict, base_dir: str = "."):
        self._show_dots = config.get("show_dots", True)
        self._show_fps = config.get("show_fps", False)
        self._dot_radius = config.get("dot_radius", 5)
        self._blur_kernel = self._odd(config.get("blur_kernel", 25))
        self._overlay_alpha = config.get("overlay_alpha", 150) / 255.0

        icon_cfg = config.get("indicator", {})
        self._icon_size = icon_cfg.get("size", 90)
        self._icon_x = icon_cfg.get("x", 12)
        self._icon_y = icon_cfg.get("y", 12)
        self._icon_gap = icon_cfg.get("gap", 10)

        self._icons = self._load_icons(config.get("icons") or {}, base_dir)

    @staticmethod
    def _odd(k) -> int:
        k = max(1, int(k))
        return k if k % 2 else k + 1

    def _load_icons(self, paths: dict, base_dir: str) -> dict:
        """Load indicator images; unreadable ones fall back to drawn tiles."""
        icons = {}
        for key, path in paths.items():
            if not path:
                continue
            full = path if os.path.isabs(path) else os.path.join(base_dir, path)
            img = cv2.imread(full, cv2.IMREAD_COLOR)
            if img is None:
                logger.warning("Indicator icon '%s' not readable at %s, drawing tile", key, full)
                continue
            icons[key] = cv2.resize(img, (self._icon_size, self._icon_size))
        if icons:
            logger.info("Loaded %d indicator icon(s)", len(icons))
        return icons

    @log_timing
    def render(self, frame: np.ndarray, flags: ConsentFlags, hands=(),
               bar: BarRect = None, min_confidence: float = 0.0,
               fps: float = None) -> np.ndarray:
        """Draw everything for one frame and return it.

        Args:
            frame: BGR frame, modified in place
            flags: this frame's consent flags
            hands: HandObservations for the keypoint dots
            bar: eye bar to draw when consent is not given
            min_confidence: hands below this are not drawn
            fps: optional frame rate for the status line
        """
        if self._show_dots:
            self.draw_hand_dots(frame, hands, min_confidence)

        if not flags.unblur:
            self.blur_and_darken(frame)

        if not flags.consent and bar is not None:
            self.draw_eye_bar(frame, bar)

        self.draw_indicators(frame, flags)

        if self._show_fps and fps is not None:
            h = frame.shape[0]
            cv2.putText(frame, f"FPS: {fps:.1f}", (self._icon_x, h - 12),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (255, 255, 255), 1)
        return frame

    def draw_hand_dots(self, frame: np.ndarray, hands, min_confidence: float):
        """Keypoint dots: magenta for left hands, yellow for right."""
        for hand in hands:
            if hand.confidence < min_confidence:
                continue
            color = _COLOR_LEFT if hand.handedness is Handedness.LEFT else _COLOR_RIGHT
            for kp in hand.keypoints:
                if kp is None:
                    continue
                cv2.circle(frame, (int(kp.x), int(kp.y)), self._dot_radius, color, -1)

    def blur_and_darken(self, frame: np.ndarray):
        """Blur the whole frame and lay a translucent black sheet over it."""
        k = self._blur_kernel
        blurred = cv2.GaussianBlur(frame, (k, k), 0)
        dark = np.zeros_like(frame)
        cv2.addWeighted(blurred, 1 - self._overlay_alpha, dark, self._overlay_alpha, 0, frame)

    def draw_eye_bar(self, frame: np.ndarray, bar: BarRect):
        x1, y1, x2, y2 = bar.as_int()
        self._fill_rounded_rect(frame, x1, y1, x2, y2, bar.radius, _COLOR_BAR)

    def draw_indicators(self, frame: np.ndarray, flags: ConsentFlags):
        """Consent, palm and point indicators along the top-left."""
        states = (flags.consent, flags.unblur, flags.pointing_active)
        x = self._icon_x
        for (yes_key, no_key, label), active in zip(_INDICATORS, states):
            key = yes_key if active else no_key
            icon = self._icons.get(key)
            if icon is not None:
                self._paste(frame, icon, x, self._icon_y)
            else:
                self._draw_tile(frame, x, self._icon_y, label, active)
            x += self._icon_size + self._icon_gap

    def _draw_tile(self, frame, x, y, label, active):
        s = self._icon_size
        color = _COLOR_YES if active else _COLOR_NO
        self._fill_rounded_rect(frame, x, y, x + s, y + s, 10, color)
        text = label if active else f"NO {label}"
        scale = 0.4
        size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, scale, 1)[0]
        tx = x + max(2, (s - size[0]) // 2)
        ty = y + (s + size[1]) // 2
        cv2.putText(frame, text, (tx, ty), cv2.FONT_HERSHEY_SIMPLEX, scale, (255, 255, 255), 1)

    @staticmethod
    def _paste(frame, icon, x, y):
        """Copy icon into frame at (x, y), clipped to the frame."""
        fh, fw = frame.shape[:2]
        ih, iw = icon.shape[:2]
        x2, y2 = min(fw, x + iw), min(fh, y + ih)
        if x2 <= x or y2 <= y:
            return
        frame[y:y2, x:x2] = icon[: y2 - y, : x2 - x]

    @staticmethod
    def _fill_rounded_rect(frame, x1, y1, x2, y2, radius, color):
        """Filled rectangle with rounded corners (square when radius is 0)."""
        r = int(max(0, min(radius, (x2 - x1) // 2, (y2 - y1) // 2)))
        if r == 0:
            cv2.rectangle(frame, (x1, y1), (x2, y2), color, -1)
            return
        cv2.rectangle(frame, (x1 + r, y1), (x2 - r, y2), color, -1)
        cv2.rectangle(frame, (x1, y1 + r), (x2, y2 - r), color, -1)
        for cx, cy in ((x1 + r, y1 + r), (x2 - r, y1 + r), (x1 + r, y2 - r), (x2 - r, y2 - r)):
            cv2.circle(frame, (cx, cy), r, color, -1)
