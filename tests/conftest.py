"""Shared fakes: speech capability, gap timer, transport surface, liveness."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import pytest

from audioscribe.controller import PlaybackController
from audioscribe.core.config import PlaybackConfig
from audioscribe.core.gap_timer import GapTimer
from audioscribe.core.liveness import LivenessSignal
from audioscribe.core.transport import NowPlaying, TransportAction, TransportSurface
from audioscribe.core.tts_service import SpeechCapability, SynthesisAdapter, Voice


class FakeSpeech(SpeechCapability):
    """Records utterances; tests decide when they finish."""

    def __init__(self, voices: Optional[List[Voice]] = None):
        super().__init__()
        self.spoken: List[tuple] = []
        self.active: List[int] = []
        self.cancel_count = 0
        self.voices = voices or []
        self.reject_next = False
        self.shut_down = False

    def speak(self, utterance_id, text, rate, pitch, voice):
        if self.reject_next:
            self.reject_next = False
            raise RuntimeError("engine busy")
        self.spoken.append((utterance_id, text, rate, pitch, voice))
        self.active.append(utterance_id)

    def cancel_all(self):
        self.cancel_count += 1
        self.active.clear()

    def list_voices(self):
        return list(self.voices)

    def shutdown(self):
        self.shut_down = True
        super().shutdown()

    def finish(self, ok: bool = True):
        utterance_id = self.active.pop(0)
        self._report(utterance_id, ok)

    @property
    def texts(self) -> List[str]:
        return [item[1] for item in self.spoken]

    @property
    def last_id(self) -> int:
        return self.spoken[-1][0]


class ManualGapTimer(GapTimer):
    """Gap timer fired by hand."""

    def __init__(self):
        self._callback: Optional[Callable[[], None]] = None
        self.delay_ms: Optional[int] = None
        self.started: List[int] = []

    def start(self, delay_ms, callback):
        self._callback = callback
        self.delay_ms = delay_ms
        self.started.append(delay_ms)

    def cancel(self):
        self._callback = None
        self.delay_ms = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def fire(self):
        callback, self._callback = self._callback, None
        self.delay_ms = None
        callback()


class FakeSurface(TransportSurface):
    def __init__(self):
        self.handlers: Dict[TransportAction, Callable[[], None]] = {}
        self.updates: List[NowPlaying] = []
        self.closed = False

    def set_action_handler(self, action, handler):
        if handler is None:
            self.handlers.pop(action, None)
        else:
            self.handlers[action] = handler

    def update(self, now_playing):
        self.updates.append(now_playing)

    def close(self):
        self.closed = True

    def press(self, action: TransportAction):
        self.handlers[action]()


class FakeLiveness(LivenessSignal):
    def __init__(self):
        self._active = False
        self.starts = 0
        self.stops = 0

    def start(self):
        self.starts += 1
        self._active = True

    def stop(self):
        self.stops += 1
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


@pytest.fixture
def speech():
    return FakeSpeech()


@pytest.fixture
def gap_timer():
    return ManualGapTimer()


@pytest.fixture
def make_controller(speech, gap_timer):
    def _make(text: str = "", gap_ms: int = 0, rate: float = 0.6) -> PlaybackController:
        controller = PlaybackController(
            SynthesisAdapter(speech),
            gap_timer=gap_timer,
            config=PlaybackConfig(rate=rate, gap_ms=gap_ms),
        )
        if text:
            controller.set_text(text)
        return controller

    return _make


@pytest.fixture
def package_logger():
    """The "audioscribe" logger with no handlers; restored afterwards."""
    logger = logging.getLogger("audioscribe")
    saved = list(logger.handlers)
    for handler in saved:
        logger.removeHandler(handler)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved:
        logger.addHandler(handler)
