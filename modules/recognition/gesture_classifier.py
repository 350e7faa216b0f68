"""
Rule-based open-palm and pointing detection from 21-point hand landmarks.

Image coordinates: origin top-left, so a smaller y is higher on screen.
A finger counts as "extended" when its tip sits above its PIP joint by more
than a margin. Pointing uses a looser test for the fingers that should be
down (tip no more than 2px above PIP), which leaves a dead zone between
the two tests so a half-bent finger does not flicker between states.
"""

import logging
import math
from typing import Iterable, Optional, Sequence, Tuple

from core.types import HandObservation, Landmark
from modules.detection.landmark_extractor import FINGERS, WRIST
from modules.utils.config import ConsentConfig

logger = logging.getLogger(__name__)

_POINTING_DOWN_FINGERS = ("middle", "ring", "pinky")


def _point(keypoints: Sequence[Optional[Landmark]], index: int) -> Optional[Landmark]:
    if 0 <= index < len(keypoints):
        return keypoints[index]
    return None


def finger_extended(keypoints, pip: int, tip: int, margin: float) -> bool:
    """Tip strictly above PIP by more than ``margin`` px. False if either is missing."""
    p, t = _point(keypoints, pip), _point(keypoints, tip)
    if p is None or t is None:
        return False
    return t.y < p.y - margin


def finger_curled(keypoints, pip: int, tip: int, margin: float) -> bool:
    """Tip not above ``PIP.y - margin``. False if either is missing."""
    p, t = _point(keypoints, pip), _point(keypoints, tip)
    if p is None or t is None:
        return False
    return t.y >= p.y - margin


def average_spread(keypoints) -> Optional[float]:
    """Mean wrist-to-fingertip distance over the fingers that have PIP and TIP.

    Returns None when the wrist is missing, 0.0 when no finger has data.
    """
    wrist = _point(keypoints, WRIST)
    if wrist is None:
        return None

    total = 0.0
    count = 0
    for pip, tip in FINGERS.values():
        p, t = _point(keypoints, pip), _point(keypoints, tip)
        if p is None or t is None:
            continue
        total += math.hypot(t.x - wrist.x, t.y - wrist.y)
        count += 1

    return total / count if count else 0.0


def is_open_palm(hand: HandObservation, config: ConsentConfig = None) -> bool:
    """Open palm: enough non-thumb fingers up AND fingertips spread from the wrist.

    The spread check rejects a fist held close to the camera whose fingers
    may read as straight but stay compact around the wrist.
    """
    config = config or ConsentConfig()
    k = hand.keypoints
    spread = average_spread(k)
    if spread is None:
        return False

    extended = sum(
        1 for pip, tip in FINGERS.values()
        if finger_extended(k, pip, tip, config.extension_margin_px)
    )

    enough_fingers_up = extended >= config.min_extended_count
    hand_looks_open = spread > config.min_avg_spread_px
    return enough_fingers_up and hand_looks_open


def is_pointing(hand: HandObservation, config: ConsentConfig = None) -> bool:
    """Index finger extended, middle/ring/pinky down."""
    config = config or ConsentConfig()
    k = hand.keypoints
    index_pip, index_tip = FINGERS["index"]
    if not finger_extended(k, index_pip, index_tip, config.pointing_extended_margin_px):
        return False
    return all(
        finger_curled(k, *FINGERS[name], config.pointing_curled_margin_px)
        for name in _POINTING_DOWN_FINGERS
    )


class GestureClassifier:
    """Per-frame gesture detection across every observed hand."""

    def __init__(self, config: ConsentConfig = None):
        self._config = config or ConsentConfig()

    @property
    def config(self) -> ConsentConfig:
        return self._config

    def is_confident(self, hand: HandObservation) -> bool:
        return hand.confidence > self._config.hand_confidence

    def confident_hands(self, hands: Iterable[HandObservation]) -> list:
        return [h for h in hands or () if self.is_confident(h)]

    def detect(self, hands: Iterable[HandObservation]) -> Tuple[bool, bool]:
        """Return (any_open, any_point) for this frame's hands.

        Hands at or below the confidence threshold are ignored; an empty
        list yields (False, False).
        """
        candidates = self.confident_hands(hands)
        any_open = any(is_open_palm(h, self._config) for h in candidates)
        any_point = any(is_pointing(h, self._config) for h in candidates)

        if candidates:
            logger.debug("Gestures: %d hand(s), open=%s point=%s",
                         len(candidates), any_open, any_point)
        return any_open, any_point
