# audioscribe/controller.py

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Tuple

from PyQt6 import QtCore

from .core.chunker import chunk
from .core.config import PlaybackConfig, clamp_gap_ms, clamp_rate
from .core.gap_timer import GapTimer, QtGapTimer
from .core.normalizer import normalize
from .core.timeline import TimelineManager
from .core.tts_service import SynthesisAdapter


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


class EngineStatus(Enum):
    READY = "ready"
    UNSUPPORTED = "unsupported"
    SYNTHESIS_ERROR = "synthesis_error"


class PlaybackController(QtCore.QObject):
    """
    Dictation playback state machine.

    - Owns the unit list, current index, status and playback config
    - Speaks one unit at a time through the SynthesisAdapter, with a gap
      timer between units
    - Two events drive it: utterance finished and gap elapsed
    - Every transport operation cancels the utterance and the gap first,
      so at most one of each is ever pending
    """

    state_changed = QtCore.pyqtSignal(object)          # PlaybackStatus
    index_changed = QtCore.pyqtSignal(int)
    units_changed = QtCore.pyqtSignal(int)
    config_changed = QtCore.pyqtSignal(object)         # PlaybackConfig
    engine_status_changed = QtCore.pyqtSignal(object)  # EngineStatus

    def __init__(self,
                 tts: SynthesisAdapter,
                 gap_timer: Optional[GapTimer] = None,
                 config: Optional[PlaybackConfig] = None,
                 timeline: Optional[TimelineManager] = None):
        super().__init__()
        self.logger = logging.getLogger("audioscribe.Playback")
        self.timeline = timeline if timeline is not None else TimelineManager()

        self._tts = tts
        self._gap_timer = gap_timer if gap_timer is not None else QtGapTimer(self)
        self._config = (config or PlaybackConfig()).clamped()

        # ---- Runtime state ----
        self._units: Tuple[str, ...] = ()
        self._status = PlaybackStatus.IDLE
        self._index = 0
        self._engine_status = EngineStatus.READY

        self._tts.utterance_finished.connect(self._on_utterance_finished)

        if not self._tts.supported:
            self._set_engine_status(EngineStatus.UNSUPPORTED)
            self.logger.warning("Speech synthesis unsupported; transport operations are disabled.")

    # -------------------------------------------------------------------------
    # STATE (read-only for hosts and the transport bridge)
    # -------------------------------------------------------------------------

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def is_playing(self) -> bool:
        return self._status is PlaybackStatus.PLAYING

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def unit_count(self) -> int:
        return len(self._units)

    @property
    def units(self) -> Tuple[str, ...]:
        return self._units

    @property
    def current_unit(self) -> Optional[str]:
        if not self._units:
            return None
        return self._units[self._index]

    @property
    def config(self) -> PlaybackConfig:
        return PlaybackConfig(self._config.rate, self._config.gap_ms, self._config.pitch)

    @property
    def engine_status(self) -> EngineStatus:
        return self._engine_status

    # -------------------------------------------------------------------------
    # INPUT
    # -------------------------------------------------------------------------

    def set_text(self, text: str):
        """Replace the whole document. Any in-flight session is dropped."""
        self._cancel_pending()
        self._units = tuple(chunk(text or ""))
        self._set_index(0)
        self._set_status(PlaybackStatus.IDLE)
        self.logger.info(f"Text loaded: {len(self._units)} units")
        self.timeline.add_event("text", f"{len(self._units)} units")
        self.units_changed.emit(len(self._units))

    # -------------------------------------------------------------------------
    # TRANSPORT
    # -------------------------------------------------------------------------

    def toggle_play(self):
        if self._status is PlaybackStatus.PLAYING:
            self.pause()
        else:
            self.play()

    def play(self):
        """Start or resume at the current unit. No-op while already playing."""
        if not self._transport_enabled("play") or self._status is PlaybackStatus.PLAYING:
            return
        self._cancel_pending()
        self._set_status(PlaybackStatus.PLAYING)
        self._speak_current()

    def pause(self):
        if self._status is not PlaybackStatus.PLAYING:
            return
        self._cancel_pending()
        self._set_status(PlaybackStatus.PAUSED)

    def reset(self):
        self._cancel_pending()
        self._set_index(0)
        self._set_status(PlaybackStatus.IDLE)

    def repeat_current(self):
        """Speak the current unit again (and keep playing from there)."""
        if not self._transport_enabled("repeat"):
            return
        self._cancel_pending()
        self._set_status(PlaybackStatus.PLAYING)
        self._speak_current()

    def previous(self):
        if not self._transport_enabled("previous"):
            return
        self._seek(max(0, self._index - 1))

    def next(self):
        if not self._transport_enabled("next"):
            return
        self._seek(min(len(self._units) - 1, self._index + 1))

    # -------------------------------------------------------------------------
    # CONFIGURATION
    # -------------------------------------------------------------------------

    def set_rate(self, value: float):
        try:
            rate = clamp_rate(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Ignoring invalid rate: {value!r}")
            return
        if rate != value:
            self.logger.debug(f"Rate {value!r} clamped to {rate}")
        if rate != self._config.rate:
            self._config.rate = rate
            self.timeline.add_event("config", f"rate={rate}")
            self.config_changed.emit(self.config)

    def set_gap_ms(self, value: float):
        try:
            gap_ms = clamp_gap_ms(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Ignoring invalid gap: {value!r}")
            return
        if gap_ms != value:
            self.logger.debug(f"Gap {value!r} clamped to {gap_ms}")
        if gap_ms != self._config.gap_ms:
            self._config.gap_ms = gap_ms
            self.timeline.add_event("config", f"gap_ms={gap_ms}")
            self.config_changed.emit(self.config)

    # -------------------------------------------------------------------------
    # EVENTS
    # -------------------------------------------------------------------------

    @QtCore.pyqtSlot(int, bool)
    def _on_utterance_finished(self, utterance_id: int, ok: bool):
        if not self._tts.settle(utterance_id):
            # cancelled or superseded
            return
        if self._status is not PlaybackStatus.PLAYING:
            return

        if not ok:
            self._set_engine_status(EngineStatus.SYNTHESIS_ERROR)
            self.timeline.add_event("error", f"Synthesis failed for unit {self._index + 1}")
        elif self._engine_status is EngineStatus.SYNTHESIS_ERROR:
            self._set_engine_status(EngineStatus.READY)

        if self._index + 1 >= len(self._units):
            self.logger.info("Reached end of dictation.")
            self._set_status(PlaybackStatus.IDLE)
            self._set_index(0)
            return

        self._gap_timer.start(self._config.gap_ms, self._on_gap_elapsed)

    def _on_gap_elapsed(self):
        if self._status is not PlaybackStatus.PLAYING:
            return
        self._set_index(self._index + 1)
        self._speak_current()

    # -------------------------------------------------------------------------
    # INTERNAL HELPERS
    # -------------------------------------------------------------------------

    def _transport_enabled(self, op: str) -> bool:
        if not self._tts.supported:
            self.logger.debug(f"{op}: speech unsupported, ignoring")
            return False
        if not self._units:
            self.logger.debug(f"{op}: no units, ignoring")
            return False
        return True

    def _seek(self, index: int):
        self._cancel_pending()
        self._set_index(index)
        if self._status is PlaybackStatus.PLAYING:
            self._speak_current()

    def _speak_current(self):
        unit = self._units[self._index]
        self.timeline.add_event("speak", f"{self._index + 1}/{len(self._units)}: {unit}")
        self._tts.speak(normalize(unit), rate=self._config.rate, pitch=self._config.pitch)

    def _cancel_pending(self):
        self._gap_timer.cancel()
        self._tts.cancel_all()

    def _set_status(self, status: PlaybackStatus):
        if status is self._status:
            return
        self.logger.info(f"Playback {self._status.value} -> {status.value}")
        self._status = status
        self.timeline.add_event("state", status.value)
        self.state_changed.emit(status)

    def _set_index(self, index: int):
        if index == self._index:
            return
        self._index = index
        self.index_changed.emit(index)

    def _set_engine_status(self, status: EngineStatus):
        if status is self._engine_status:
            return
        self._engine_status = status
        self.timeline.add_event("engine", status.value)
        self.engine_status_changed.emit(status)
