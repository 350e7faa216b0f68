"""
Consent state: turns a frame's hand observations into the unblur/consent
flags the renderer consumes.

``update_consent`` is a pure function of (state, hands, config); the
caller owns the GestureState and passes it back in on the next frame.
``ConsentTracker`` wraps that for the frame loop and reports transitions.
"""

import logging
from typing import Iterable, Optional, Tuple

from core.events import EventBus, Events
from core.types import ConsentFlags, GestureState, HandObservation
from modules.recognition.gesture_classifier import GestureClassifier
from modules.recognition.temporal_filter import update_streaks
from modules.utils.config import ConsentConfig

logger = logging.getLogger(__name__)


def derive_flags(state: GestureState, config: ConsentConfig,
                 any_open: bool = False, any_point: bool = False) -> ConsentFlags:
    """Flags implied by the streaks. Pointing alone never grants consent."""
    unblur = state.open_streak >= config.open_frames
    pointing_active = state.point_streak >= config.point_frames
    return ConsentFlags(
        unblur=unblur,
        consent=unblur and pointing_active,
        pointing_active=pointing_active,
        any_open=any_open,
        any_point=any_point,
    )


def update_consent(state: GestureState, hands: Iterable[HandObservation],
                   config: ConsentConfig,
                   classifier: Optional[GestureClassifier] = None
                   ) -> Tuple[GestureState, ConsentFlags]:
    """Run one frame: detect gestures, step the streaks, derive the flags."""
    classifier = classifier or GestureClassifier(config)
    any_open, any_point = classifier.detect(hands)
    new_state = update_streaks(state, any_open, any_point, config)
    return new_state, derive_flags(new_state, config, any_open, any_point)


class ConsentTracker:
    """Holds the GestureState between frames and publishes flag changes."""

    def __init__(self, config: ConsentConfig = None, event_bus: EventBus = None):
        self._config = config or ConsentConfig()
        self._classifier = GestureClassifier(self._config)
        self._bus = event_bus or EventBus()
        self._state = GestureState()
        self._flags = derive_flags(self._state, self._config)
        self._frame_count = 0

    def update(self, hands: Iterable[HandObservation]) -> ConsentFlags:
        """Process one frame of hand observations and return the new flags."""
        previous = self._flags
        self._state, self._flags = update_consent(
            self._state, hands, self._config, self._classifier
        )
        self._frame_count += 1
        self._publish_changes(previous, self._flags)
        return self._flags

    def _publish_changes(self, old: ConsentFlags, new: ConsentFlags):
        for name, event in (
            ("unblur", Events.UNBLUR_CHANGED),
            ("pointing_active", Events.POINTING_CHANGED),
            ("consent", Events.CONSENT_CHANGED),
        ):
            value = getattr(new, name)
            if value != getattr(old, name):
                logger.info("%s -> %s (frame %d)", name, value, self._frame_count)
                self._bus.emit(event, value=value, state=self._state)

    def reset(self):
        """Forget all streaks, as on a restart."""
        self._state = GestureState()
        self._flags = derive_flags(self._state, self._config)
        self._frame_count = 0

    @property
    def state(self) -> GestureState:
        return self._state

    @property
    def flags(self) -> ConsentFlags:
        return self._flags

    @property
    def classifier(self) -> GestureClassifier:
        return self._classifier

    @property
    def config(self) -> ConsentConfig:
        return self._config

    @property
    def frame_count(self) -> int:
        return self._frame_count
