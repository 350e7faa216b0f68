"""
Logging setup plus a small recorder for consent state transitions.
"""

import os
import logging
import logging.handlers
import time
from functools import wraps


_CONSOLE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)-28s %(message)s"
_TIME_FORMAT = "%H:%M:%S"


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Send logs to the console and, when ``log_file`` is set, a rotating file.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output. Unknown level names fall back to INFO.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_TIME_FORMAT))
    root_logger.addHandler(console)

    if not log_file:
        return root_logger

    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
    rotating = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=int(max_size_mb * 1024 * 1024), backupCount=backup_count
    )
    # File keeps debug detail regardless of the console level
    rotating.setLevel(logging.DEBUG)
    rotating.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_TIME_FORMAT))
    root_logger.addHandler(rotating)
    return root_logger


class ConsentLogger:
    """Records unblur / pointing / consent transitions for the session summary."""

    def __init__(self):
        self.logger = logging.getLogger("consent_events")
        self._history = []

    def log_change(self, flag: str, value: bool, state=None):
        """Record one flag transition."""
        entry = {
            "timestamp": time.time(),
            "flag": flag,
            "value": bool(value),
            "open_streak": getattr(state, "open_streak", None),
            "point_streak": getattr(state, "point_streak", None),
        }
        self._history.append(entry)
        self.logger.info(
            "%-16s -> %-5s | streaks open=%s point=%s",
            flag, value, entry["open_streak"], entry["point_streak"],
        )

    def handler(self, flag: str):
        """Event-bus callback bound to one flag name."""
        def _on_change(value=None, state=None, **_):
            self.log_change(flag, value, state)
        _on_change.__name__ = f"log_{flag}"
        return _on_change

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return self._history.copy()

    def count(self, flag: str, value: bool = True) -> int:
        """How many times ``flag`` switched to ``value``."""
        return sum(1 for e in self._history if e["flag"] == flag and e["value"] == value)


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
