"""
Configuration management for AudioScribe.
Loads settings from a JSON file and provides typed access, plus the bounded
playback configuration used by the controller.
"""

import copy
import json
import logging
import math
import os
from dataclasses import dataclass
from typing import Dict, Any, List, Optional


RATE_MIN = 0.3
RATE_MAX = 1.5
RATE_STEP = 0.1

GAP_MIN_MS = 0
GAP_MAX_MS = 4000
GAP_STEP_MS = 500

DEFAULT_RATE = 0.6
DEFAULT_GAP_MS = 1000
DEFAULT_PITCH = 1.0

DEFAULT_CONFIG: Dict[str, Any] = {
    "logs_path": "data/logs/",
    "speech": {
        "rate": DEFAULT_RATE,
        "gap_ms": DEFAULT_GAP_MS,
        "pitch": DEFAULT_PITCH,
        "base_wpm": 200,
        "volume": 0.9,
    },
    "voice": {
        "locale_prefix": "en",
        "name_hints": ["Male", "David", "Google US English"],
    },
    "session": {
        "title": "AudioScribe Dictation",
        "album": "EchoNotes AI",
        "artwork": None,
    },
    "liveness": {
        "enabled": True,
        "sample_rate": 8000,
    },
}


def _snap(value: float, lower: float, upper: float, step: float) -> float:
    # Bound first so infinities never reach the grid arithmetic
    value = min(upper, max(lower, value))
    snapped = lower + math.floor((value - lower) / step + 0.5) * step
    return min(upper, max(lower, snapped))


def _number(value: float, what: str) -> float:
    try:
        value = float(value)
    except OverflowError:
        # ints too large for a float
        value = math.inf if value > 0 else -math.inf
    if math.isnan(value):
        raise ValueError(f"{what} must be a number")
    return value


def clamp_rate(value: float) -> float:
    """Clamp a speech rate into [0.3, 1.5] on a 0.1 grid."""
    value = _number(value, "rate")
    return round(_snap(value, RATE_MIN, RATE_MAX, RATE_STEP), 1)


def clamp_gap_ms(value: float) -> int:
    """Clamp an inter-unit gap into [0, 4000] ms on a 500 ms grid."""
    value = _number(value, "gap")
    return int(_snap(value, GAP_MIN_MS, GAP_MAX_MS, GAP_STEP_MS))


def _finite(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError("value must be finite")
    return value


@dataclass
class PlaybackConfig:
    """Rate, gap and pitch applied to the next utterance."""

    rate: float = DEFAULT_RATE
    gap_ms: int = DEFAULT_GAP_MS
    pitch: float = DEFAULT_PITCH

    def clamped(self) -> "PlaybackConfig":
        return PlaybackConfig(
            rate=clamp_rate(self.rate),
            gap_ms=clamp_gap_ms(self.gap_ms),
            pitch=float(self.pitch),
        )


class Config:
    """
    Configuration manager for AudioScribe.
    Loads settings from a JSON file and provides typed access.
    """

    def __init__(self, config_path: str = "audioscribe.json"):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration JSON file
        """
        self.logger = logging.getLogger("audioscribe.Config")
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.load()

    def load(self) -> bool:
        """
        Load configuration from JSON file.
        Falls back to defaults if the file doesn't exist or can't be parsed.

        Returns:
            True if loaded successfully, False otherwise
        """
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self.config = json.load(f)
                self.logger.info(f"Configuration loaded from {self.config_path}")
                return True
            else:
                self.logger.warning(f"Config file not found: {self.config_path}, using defaults")
                self.config = copy.deepcopy(DEFAULT_CONFIG)
                return False
        except (OSError, ValueError) as e:
            self.logger.error(f"Error loading configuration: {e}", exc_info=True)
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return False

    def save(self) -> bool:
        """
        Save current configuration to file.

        Returns:
            True if saved successfully, False otherwise
        """
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
            self.logger.info(f"Configuration saved to {self.config_path}")
            return True
        except OSError as e:
            self.logger.error(f"Error saving configuration: {e}", exc_info=True)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation (e.g., "speech.rate").

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> bool:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (supports dot notation for nested keys)
            value: Value to set

        Returns:
            True if set successfully, False if a non-dict value is in the way
        """
        keys = key.split('.')
        config = self.config

        # Navigate to parent dict
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
            if not isinstance(config, dict):
                self.logger.error(f"Cannot set {key}: '{k}' is not a section")
                return False

        config[keys[-1]] = value
        return True

    def playback_config(self) -> PlaybackConfig:
        """
        Build the (clamped) playback configuration from the speech section.
        Unusable values (strings, NaN, null) fall back to the defaults.
        """
        return PlaybackConfig(
            rate=self._playback_value("speech.rate", self.speech_rate, clamp_rate, DEFAULT_RATE),
            gap_ms=self._playback_value("speech.gap_ms", self.gap_ms, clamp_gap_ms, DEFAULT_GAP_MS),
            pitch=self._playback_value("speech.pitch", self.speech_pitch, _finite, DEFAULT_PITCH),
        )

    def _playback_value(self, key: str, value: Any, convert, default):
        try:
            return convert(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Invalid value for {key}: {value!r}, using {default}")
            return default

    # Convenience properties
    @property
    def logs_path(self) -> str:
        return self.get("logs_path", DEFAULT_CONFIG["logs_path"])

    @property
    def speech_rate(self) -> float:
        return self.get("speech.rate", DEFAULT_RATE)

    @property
    def gap_ms(self) -> int:
        return self.get("speech.gap_ms", DEFAULT_GAP_MS)

    @property
    def speech_pitch(self) -> float:
        return self.get("speech.pitch", DEFAULT_PITCH)

    @property
    def base_wpm(self) -> int:
        """Words per minute at rate 1.0."""
        return self.get("speech.base_wpm", 200)

    @property
    def volume(self) -> float:
        return self.get("speech.volume", 0.9)

    @property
    def voice_locale_prefix(self) -> str:
        return self.get("voice.locale_prefix", "en")

    @property
    def voice_name_hints(self) -> List[str]:
        return list(self.get("voice.name_hints", DEFAULT_CONFIG["voice"]["name_hints"]))

    @property
    def session_title(self) -> str:
        return self.get("session.title", DEFAULT_CONFIG["session"]["title"])

    @property
    def session_album(self) -> str:
        return self.get("session.album", DEFAULT_CONFIG["session"]["album"])

    @property
    def session_artwork(self) -> Optional[str]:
        return self.get("session.artwork")

    @property
    def liveness_enabled(self) -> bool:
        return bool(self.get("liveness.enabled", True))

    @property
    def liveness_sample_rate(self) -> int:
        return self.get("liveness.sample_rate", 8000)
