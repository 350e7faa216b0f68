"""
Streak counters that debounce per-frame gesture detections.

Each counter is a bounded leaky integrator: +1 on a detected frame, -1 on
a missed one, clamped to [0, threshold]. A single dropped frame only costs
one step, so flickering detections can still reach and hold the confirmed
state. With a threshold of 1 the counter reacts instantly.
"""

import logging

from core.types import GestureState
from modules.utils.config import ConsentConfig

logger = logging.getLogger(__name__)


def step_streak(streak: int, detected: bool, threshold: int) -> int:
    """Advance one counter by a single frame, keeping it within [0, threshold]."""
    streak = max(0, min(int(streak), threshold))
    if detected:
        return min(streak + 1, threshold)
    return max(streak - 1, 0)


def update_streaks(state: GestureState, any_open: bool, any_point: bool,
                   config: ConsentConfig) -> GestureState:
    """Return the streaks for the next frame."""
    new_state = GestureState(
        open_streak=step_streak(state.open_streak, any_open, config.open_frames),
        point_streak=step_streak(state.point_streak, any_point, config.point_frames),
    )
    if new_state != state:
        logger.debug("Streaks: open %d->%d, point %d->%d",
                     state.open_streak, new_state.open_streak,
                     state.point_streak, new_state.point_streak)
    return new_state
