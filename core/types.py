"""
Shared domain types for the Consent Cam system.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Sequence


# =============================================================================
# Landmarks
# =============================================================================

class Landmark(NamedTuple):
    """A 2D point in image-pixel space (origin top-left, y grows downward)."""
    x: float
    y: float


class Handedness(Enum):
    """Which hand the detector believes it is seeing."""
    LEFT = "Left"
    RIGHT = "Right"

    @classmethod
    def from_label(cls, label: str) -> "Handedness":
        """Parse a detector label, case-insensitively. Unknown labels map to RIGHT."""
        if str(label).strip().lower() == "left":
            return cls.LEFT
        return cls.RIGHT

    @property
    def mirrored(self) -> "Handedness":
        return Handedness.RIGHT if self is Handedness.LEFT else Handedness.LEFT


# =============================================================================
# Observations (produced once per frame by the detectors)
# =============================================================================

@dataclass(frozen=True)
class HandObservation:
    """One detected hand for one frame.

    ``keypoints`` follows the 21-point MediaPipe layout. An entry may be
    None when the detector did not supply that point; every predicate
    treats a missing point as "not detected".
    """
    handedness: Handedness
    confidence: float
    keypoints: Sequence[Optional[Landmark]]

    def get(self, index: int) -> Optional[Landmark]:
        """Keypoint by index, or None when absent or out of range."""
        if 0 <= index < len(self.keypoints):
            return self.keypoints[index]
        return None


@dataclass(frozen=True)
class FaceObservation:
    """Eye-region landmarks for one detected face.

    Either ``annotations`` (named eye contours) or ``mesh`` (indexable
    face-mesh points) may be empty.
    """
    annotations: Dict[str, List[Landmark]] = field(default_factory=dict)
    mesh: Sequence[Optional[Landmark]] = ()


# =============================================================================
# Gesture / Consent State
# =============================================================================

class GestureState(NamedTuple):
    """Streak counters carried from one frame to the next.

    Owned by the caller; every update returns a new value.
    """
    open_streak: int = 0
    point_streak: int = 0


class ConsentFlags(NamedTuple):
    """Per-frame output consumed by the renderer."""
    unblur: bool = False
    consent: bool = False
    pointing_active: bool = False
    any_open: bool = False
    any_point: bool = False


# =============================================================================
# Eye Bar
# =============================================================================

class BarRect(NamedTuple):
    """Rectangle for the eye-censor bar, in pixels."""
    x: float
    y: float
    w: float
    h: float
    radius: int = 0
    tracked: bool = False

    def as_int(self) -> tuple:
        """(x1, y1, x2, y2) rounded for OpenCV drawing."""
        x1 = int(round(self.x))
        y1 = int(round(self.y))
        return (x1, y1, x1 + int(round(self.w)), y1 + int(round(self.h)))
