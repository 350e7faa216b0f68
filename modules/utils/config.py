"""
Centralized configuration manager.
Loads YAML configs and provides typed access with defaults.

Also defines ConsentConfig, the typed view of the ``gestures`` section that
the classifier and streak counters consume.
"""

import copy
import os
import logging
from dataclasses import dataclass, asdict

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

# Values used when config.yaml is missing or leaves a key out
_DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 960,
        "height": 540,
        "flip_horizontal": True,
        "backend": "auto",
        "max_missed_frames": 150,
    },
    "mediapipe": {
        "model_complexity": 0,
        "max_num_hands": 2,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
        "max_num_faces": 1,
        "refine_face_landmarks": False,
    },
    "gestures": {
        "hand_confidence": 0.10,
        "open_frames": 1,
        "point_frames": 1,
        "extension_margin_px": 6,
        "min_extended_count": 3,
        "min_avg_spread_px": 70,
        "pointing_extended_margin_px": 6,
        "pointing_curled_margin_px": 2,
    },
    "visualization": {
        "enabled": True,
        "window_name": "Consent Cam",
        "show_dots": True,
        "show_fps": False,
        "blur_kernel": 25,
        "overlay_alpha": 150,
        "icons": {},
    },
    "performance": {
        "metrics_window": 100,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: required sections and their expected types
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "flip_horizontal": bool,
        "max_missed_frames": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "gestures": {
        "hand_confidence": float,
        "open_frames": int,
        "point_frames": int,
        "extension_margin_px": float,
        "min_extended_count": int,
        "min_avg_spread_px": float,
    },
    "visualization": {
        "show_dots": bool,
        "icons": dict,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True)
class ConsentConfig:
    """Thresholds for gesture detection and consent confirmation."""
    # Min model confidence for a hand to be considered at all
    hand_confidence: float = 0.10
    # Frames needed to confirm each gesture (higher = hold the pose longer)
    open_frames: int = 1
    point_frames: int = 1
    # Open palm: tip must be this many px above its PIP to count as extended
    extension_margin_px: float = 6
    min_extended_count: int = 3
    min_avg_spread_px: float = 70
    # Pointing: index extended past 6px, others "down" unless 2px above PIP
    pointing_extended_margin_px: float = 6
    pointing_curled_margin_px: float = 2

    def __post_init__(self):
        if self.open_frames < 1:
            raise ValueError(f"open_frames must be >= 1, got {self.open_frames}")
        if self.point_frames < 1:
            raise ValueError(f"point_frames must be >= 1, got {self.point_frames}")
        if not 0 <= self.min_extended_count <= 4:
            raise ValueError(
                f"min_extended_count must be within 0..4, got {self.min_extended_count}"
            )

    @classmethod
    def from_dict(cls, d: dict) -> "ConsentConfig":
        """Create config from the ``gestures`` section of config.yaml."""
        d = d or {}
        defaults = cls.__dataclass_fields__
        return cls(
            hand_confidence=float(d.get("hand_confidence", defaults["hand_confidence"].default)),
            open_frames=int(d.get("open_frames", defaults["open_frames"].default)),
            point_frames=int(d.get("point_frames", defaults["point_frames"].default)),
            extension_margin_px=float(
                d.get("extension_margin_px", defaults["extension_margin_px"].default)
            ),
            min_extended_count=int(
                d.get("min_extended_count", defaults["min_extended_count"].default)
            ),
            min_avg_spread_px=float(
                d.get("min_avg_spread_px", defaults["min_avg_spread_px"].default)
            ),
            pointing_extended_margin_px=float(
                d.get("pointing_extended_margin_px",
                      defaults["pointing_extended_margin_px"].default)
            ),
            pointing_curled_margin_px=float(
                d.get("pointing_curled_margin_px",
                      defaults["pointing_curled_margin_px"].default)
            ),
        )

    def to_dict(self) -> dict:
        return asdict(self)


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(_DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file, layered over the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), loaded)

        # Validate schema
        self._validate()

        # Fail fast on bad thresholds rather than mid-loop
        ConsentConfig.from_dict(self.gestures)

        return self

    def _validate(self):
        """Validate critical config fields against schema."""
        warnings = []
        for section_name, fields in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if section is None:
                warnings.append(f"Missing config section: '{section_name}'")
                continue
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, expected_type in fields.items():
                if field_name in section:
                    value = section[field_name]
                    # Allow int where float is expected
                    if expected_type is float and isinstance(value, (int, float)):
                        continue
                    if not isinstance(value, expected_type):
                        warnings.append(
                            f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                            f"got {type(value).__name__} ({value!r})"
                        )

        if warnings:
            for w in warnings:
                logger.warning("Config validation: %s", w)
        else:
            logger.debug("Config validation passed")
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def set(self, key_path: str, value):
        """Override a nested value using dot notation (used for CLI flags)."""
        keys = key_path.split(".")
        target = self._data
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def camera(self) -> dict:
        return self._data.get("camera", {})

    @property
    def mediapipe(self) -> dict:
        return self._data.get("mediapipe", {})

    @property
    def gestures(self) -> dict:
        return self._data.get("gestures", {})

    @property
    def visualization(self) -> dict:
        return self._data.get("visualization", {})

    @property
    def performance(self) -> dict:
        return self._data.get("performance", {})

    @property
    def consent(self) -> ConsentConfig:
        return ConsentConfig.from_dict(self.gestures)

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
