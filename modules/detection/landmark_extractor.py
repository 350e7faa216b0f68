"""
21-point hand landmark layout and adapters from detector output to the
core Landmark / HandObservation / FaceObservation types.

All shape handling for external landmark formats happens here, once per
frame; the classifier only ever sees Landmark tuples (or None).
"""

import logging
from collections.abc import Mapping, Sequence

import numpy as np

from core.types import FaceObservation, HandObservation, Handedness, Landmark

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

NUM_HAND_LANDMARKS = 21

# (PIP, TIP) per non-thumb finger; the thumb is not used by the gestures
FINGERS = {
    "index":  (INDEX_PIP, INDEX_TIP),
    "middle": (MIDDLE_PIP, MIDDLE_TIP),
    "ring":   (RING_PIP, RING_TIP),
    "pinky":  (PINKY_PIP, PINKY_TIP),
}

# Eye contour annotation names, upper lid first
EYE_ANNOTATIONS = ("leftEyeUpper0", "leftEyeLower0", "rightEyeUpper0", "rightEyeLower0")


def to_landmark(point):
    """Normalize one external point into a Landmark.

    Accepts a sequence ``(x, y[, z])``, a mapping or object with ``x``/``y``,
    or one with ``position.x``/``position.y``. Returns None for anything
    else, including None itself.
    """
    if point is None:
        return None
    if isinstance(point, Landmark):
        return point
    if isinstance(point, np.ndarray):
        if point.ndim != 1 or point.shape[0] < 2:
            return None
        return _landmark_or_none(point[0], point[1])
    if isinstance(point, Mapping):
        if "x" in point and "y" in point:
            return _landmark_or_none(point["x"], point["y"])
        if "position" in point:
            return to_landmark(point["position"])
        return None
    if isinstance(point, Sequence) and not isinstance(point, (str, bytes)):
        if len(point) < 2:
            return None
        return _landmark_or_none(point[0], point[1])
    if hasattr(point, "x") and hasattr(point, "y"):
        return _landmark_or_none(point.x, point.y)
    if hasattr(point, "position"):
        return to_landmark(point.position)
    return None


def _landmark_or_none(x, y):
    try:
        return Landmark(float(x), float(y))
    except (TypeError, ValueError):
        return None


def to_landmarks(points) -> list:
    """Normalize a sequence of points, keeping positions (None where unusable)."""
    if points is None:
        return []
    return [to_landmark(p) for p in points]


def hand_from_keypoints(keypoints, handedness="Right", confidence=1.0) -> HandObservation:
    """Build a HandObservation from any supported point shape."""
    if not isinstance(handedness, Handedness):
        handedness = Handedness.from_label(handedness)
    return HandObservation(
        handedness=handedness,
        confidence=float(confidence),
        keypoints=tuple(to_landmarks(keypoints)),
    )


def face_from_points(annotations=None, mesh=None) -> FaceObservation:
    """Build a FaceObservation from annotation arrays and/or mesh points."""
    normalized = {}
    for name, points in (annotations or {}).items():
        normalized[name] = [lm for lm in to_landmarks(points) if lm is not None]
    return FaceObservation(annotations=normalized, mesh=tuple(to_landmarks(mesh)))


# =============================================================================
# MediaPipe result adapters
# =============================================================================

def _scaled(landmark_list, width: int, height: int) -> list:
    """MediaPipe normalized landmarks -> pixel-space Landmarks."""
    return [Landmark(lm.x * width, lm.y * height) for lm in landmark_list.landmark]


def hands_from_results(results, width: int, height: int, selfie_view: bool = True) -> list:
    """Convert MediaPipe Hands results to HandObservations in pixel space.

    Args:
        results: object with ``multi_hand_landmarks`` / ``multi_handedness``
        width, height: frame size used to scale the normalized coordinates
        selfie_view: True when the frame was flipped horizontally before
            detection. MediaPipe labels handedness assuming a mirrored image,
            so labels are swapped when the frame was not flipped

    Returns:
        list of HandObservation (empty when nothing was detected)
    """
    if results is None or not getattr(results, "multi_hand_landmarks", None):
        return []

    handedness_list = getattr(results, "multi_handedness", None) or []
    hands = []
    for i, hand_lm in enumerate(results.multi_hand_landmarks):
        label, score = "Right", 0.0
        if i < len(handedness_list) and handedness_list[i].classification:
            cls = handedness_list[i].classification[0]
            label, score = cls.label, cls.score

        handedness = Handedness.from_label(label)
        if not selfie_view:
            handedness = handedness.mirrored

        hands.append(HandObservation(
            handedness=handedness,
            confidence=float(score),
            keypoints=tuple(_scaled(hand_lm, width, height)),
        ))
    return hands


def faces_from_results(results, width: int, height: int) -> list:
    """Convert MediaPipe FaceMesh results to FaceObservations (mesh only)."""
    if results is None or not getattr(results, "multi_face_landmarks", None):
        return []
    return [
        FaceObservation(mesh=tuple(_scaled(face_lm, width, height)))
        for face_lm in results.multi_face_landmarks
    ]
