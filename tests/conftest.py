"""
Shared fixtures: synthetic hands in pixel space.
"""

import math
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.types import HandObservation, Handedness, Landmark
from modules.detection.landmark_extractor import FINGERS

WRIST_POS = (320.0, 400.0)

# Fingertip directions from the wrist, degrees from the +x axis (upward is 90)
_FINGER_ANGLES = {"index": 110.0, "middle": 95.0, "ring": 80.0, "pinky": 65.0}


def create_hand(tip_above_pip=None, reach=100.0, confidence=0.5,
                handedness=Handedness.RIGHT, missing=()):
    """
    Build a 21-keypoint hand.

    Args:
        tip_above_pip: dict finger -> px the tip sits above its PIP
                       (negative = below). Defaults to 20 for every finger.
        reach: wrist-to-tip distance for every finger
        confidence: detector confidence
        missing: keypoint indices to leave as None

    Returns:
        HandObservation
    """
    offsets = {name: 20.0 for name in FINGERS}
    offsets.update(tip_above_pip or {})

    wx, wy = WRIST_POS
    keypoints = [Landmark(wx, wy) for _ in range(21)]

    for name, (pip, tip) in FINGERS.items():
        angle = math.radians(_FINGER_ANGLES[name])
        tip_pt = Landmark(wx + reach * math.cos(angle), wy - reach * math.sin(angle))
        keypoints[tip] = tip_pt
        keypoints[pip] = Landmark(tip_pt.x, tip_pt.y + offsets[name])

    for i in missing:
        keypoints[i] = None

    return HandObservation(handedness=handedness, confidence=confidence,
                           keypoints=tuple(keypoints))


@pytest.fixture
def make_hand():
    """Factory fixture wrapping create_hand."""
    return create_hand


@pytest.fixture
def open_hand():
    return create_hand()


@pytest.fixture
def pointing_hand():
    return create_hand({"index": 10, "middle": -5, "ring": -5, "pinky": -5})
