# audioscribe/session.py

"""
DictationSession: wires config, speech, controller and transport together.

Hosts create one session per document view, push text with ``set_text`` and
drive ``session.controller`` from their on-screen transport.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6 import QtCore

from .controller import PlaybackController
from .core.config import Config
from .core.gap_timer import GapTimer
from .core.liveness import LivenessSignal, SilentLoop
from .core.logger import setup_logging
from .core.timeline import TimelineManager
from .core.transport import MediaKeySurface, TransportBridge, TransportSurface
from .core.tts_service import (
    Pyttsx3Speech,
    SpeechCapability,
    SpeechUnavailableError,
    SynthesisAdapter,
    VoicePreference,
)


def create_speech(config: Config) -> Optional[SpeechCapability]:
    """pyttsx3 capability, or None when the host cannot synthesize speech."""
    logger = logging.getLogger("audioscribe.Session")
    try:
        return Pyttsx3Speech(base_wpm=config.base_wpm, volume=config.volume)
    except SpeechUnavailableError as e:
        logger.error(f"Speech synthesis unavailable: {e}")
        return None


def create_surface() -> Optional[TransportSurface]:
    """Media-key surface when a Qt application is running, else None."""
    if QtCore.QCoreApplication.instance() is None:
        return None
    return MediaKeySurface()


class DictationSession:
    """
    One dictation engine instance.

    Every collaborator can be injected; anything left out is built from the
    config (pyttsx3 speech, Qt gap timer, media keys, silent loop).
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 speech: Optional[SpeechCapability] = None,
                 gap_timer: Optional[GapTimer] = None,
                 surface: Optional[TransportSurface] = None,
                 liveness: Optional[LivenessSignal] = None,
                 use_platform_defaults: bool = True):
        self.config = config if config is not None else Config()
        setup_logging(Path(self.config.logs_path))
        self.logger = logging.getLogger("audioscribe.Session")

        if speech is None and use_platform_defaults:
            speech = create_speech(self.config)
        if surface is None and use_platform_defaults:
            surface = create_surface()
        if liveness is None and use_platform_defaults and self.config.liveness_enabled:
            liveness = SilentLoop(sample_rate=self.config.liveness_sample_rate)

        self.timeline = TimelineManager()
        self.tts = SynthesisAdapter(
            speech,
            VoicePreference(
                locale_prefix=self.config.voice_locale_prefix,
                name_hints=tuple(self.config.voice_name_hints),
            ),
        )
        self.controller = PlaybackController(
            self.tts,
            gap_timer=gap_timer,
            config=self.config.playback_config(),
            timeline=self.timeline,
        )
        self.bridge = TransportBridge(
            self.controller,
            surface=surface,
            liveness=liveness,
            title=self.config.session_title,
            album=self.config.session_album,
            artwork=self.config.session_artwork,
        )
        self.logger.info(
            f"Dictation session ready (speech={'on' if self.tts.supported else 'off'}, "
            f"surface={'on' if surface else 'off'}, liveness={'on' if liveness else 'off'})"
        )

    @property
    def supported(self) -> bool:
        return self.tts.supported

    def set_text(self, text: str):
        self.controller.set_text(text)

    def shutdown(self):
        """Clean shutdown when the host view goes away."""
        self.controller.reset()
        self.bridge.close()
        self.tts.shutdown()
        self.logger.info("Dictation session shut down.")
