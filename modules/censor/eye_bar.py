"""
Eye-censor bar placement from face landmarks.

Named eye contours are used when the detector provides them, otherwise a
fixed set of face-mesh indices around both eyes. When no face (or no eye
point) is available the bar falls back to a fixed band across the upper
third of the frame, so the eyes stay covered even when tracking drops.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from core.types import BarRect, FaceObservation
from modules.detection.landmark_extractor import EYE_ANNOTATIONS

logger = logging.getLogger(__name__)

# Face-mesh indices outlining each eye
LEFT_EYE_MESH = (33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246)
RIGHT_EYE_MESH = (263, 249, 390, 373, 374, 380, 381, 382, 362, 398, 384, 385, 386, 387, 388, 466)

PAD_X = 22
PAD_Y = 10
TRACKED_RADIUS = 6

# Fallback band, as fractions of the frame
FALLBACK_Y = 0.32
FALLBACK_X = 0.2
FALLBACK_W = 0.6
FALLBACK_H = 24
FALLBACK_RADIUS = 4


def eye_points(face: Optional[FaceObservation]) -> list:
    """Eye landmarks for one face; annotations first, mesh indices otherwise."""
    if face is None:
        return []

    points = []
    for name in EYE_ANNOTATIONS:
        points.extend(p for p in face.annotations.get(name, ()) if p is not None)

    if not points and face.mesh:
        mesh = face.mesh
        for i in LEFT_EYE_MESH + RIGHT_EYE_MESH:
            if i < len(mesh) and mesh[i] is not None:
                points.append(mesh[i])

    return points


def fallback_bar(width: int, height: int) -> BarRect:
    """Fixed bar used when the eyes cannot be located."""
    return BarRect(
        x=width * FALLBACK_X,
        y=height * FALLBACK_Y,
        w=width * FALLBACK_W,
        h=FALLBACK_H,
        radius=FALLBACK_RADIUS,
        tracked=False,
    )


def eye_bar_rect(faces: Sequence[FaceObservation], width: int, height: int) -> BarRect:
    """Padded bounding box of the first face's eyes, or the fallback bar."""
    face = faces[0] if faces else None
    points = eye_points(face)
    if not points:
        return fallback_bar(width, height)

    xy = np.asarray(points, dtype=np.float64)
    min_x, min_y = xy.min(axis=0)
    max_x, max_y = xy.max(axis=0)

    return BarRect(
        x=float(min_x - PAD_X),
        y=float(min_y - PAD_Y),
        w=float(max_x - min_x + PAD_X * 2),
        h=float(max_y - min_y + PAD_Y * 2),
        radius=TRACKED_RADIUS,
        tracked=True,
    )
