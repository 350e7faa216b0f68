"""
Publish/subscribe for consent state changes.

The consent tracker announces flag transitions here; the app and the
consent logger listen without the tracker knowing about them.

Usage:
    bus = EventBus()
    bus.subscribe(Events.CONSENT_CHANGED, on_consent)
    bus.emit(Events.CONSENT_CHANGED, value=True, state=state)
"""

import time
import logging
from collections import defaultdict, deque
from typing import Callable

logger = logging.getLogger(__name__)


def _name(callback) -> str:
    return getattr(callback, "__name__", repr(callback))


class EventBus:
    """Synchronous event bus; listeners run in the emitting thread.

    A listener that raises is logged and skipped so the frame loop keeps
    running.
    """

    def __init__(self, max_history: int = 100):
        # event -> [(priority, callback)], highest priority first
        self._listeners = defaultdict(list)
        self._history = deque(maxlen=max_history)
        self._enabled = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Listen for ``event_name``.

        Args:
            event_name: one of the ``Events`` names (any string works)
            callback: called with the keyword arguments passed to emit()
            priority: higher runs earlier; ties keep subscription order
        """
        handlers = self._listeners[event_name]
        handlers.append((priority, callback))
        handlers.sort(key=lambda entry: entry[0], reverse=True)
        logger.debug("%s listening to '%s' (priority=%d)",
                     _name(callback), event_name, priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        if event_name not in self._listeners:
            return
        self._listeners[event_name] = [
            entry for entry in self._listeners[event_name] if entry[1] is not callback
        ]

    def emit(self, event_name: str, **kwargs):
        """Call every listener of ``event_name`` with ``kwargs``."""
        if not self._enabled:
            return

        self._history.append((time.time(), event_name, tuple(kwargs)))

        for _, callback in list(self._listeners.get(event_name, ())):
            try:
                callback(**kwargs)
            except Exception:
                logger.exception("Listener %s failed on '%s'", _name(callback), event_name)

    def set_enabled(self, enabled: bool):
        self._enabled = enabled

    def clear(self, event_name: str = None):
        """Drop listeners for one event, or for all of them."""
        if event_name is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event_name, None)

    @property
    def registered_events(self) -> list:
        return [name for name, handlers in self._listeners.items() if handlers]

    @property
    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())

    def get_history(self, last_n: int = 10) -> list:
        """Most recent emits as dicts with ``event``, ``time`` and ``keys``."""
        recent = list(self._history)[-last_n:] if last_n else []
        return [{"event": name, "time": t, "keys": keys} for t, name, keys in recent]


class Events:
    """Event names published in the app."""

    # Consent flag transitions (kwargs: value, state)
    UNBLUR_CHANGED = "unblur_changed"
    POINTING_CHANGED = "pointing_changed"
    CONSENT_CHANGED = "consent_changed"

    # kwargs: device
    CAMERA_ERROR = "camera_error"

    SYSTEM_STARTED = "system_started"
    SYSTEM_SHUTDOWN = "system_shutdown"
