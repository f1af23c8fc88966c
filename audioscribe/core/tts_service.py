"""
Text-to-Speech service.

Wraps a speech capability ("speak one utterance, cancel everything pending,
list voices") behind a Qt signal so completions always reach the playback
controller on its own thread. The pyttsx3 capability runs the engine in a
background worker thread, one utterance at a time.
"""

import logging
import queue
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

from PyQt6 import QtCore

try:
    import pyttsx3
except ImportError:
    pyttsx3 = None
    logging.getLogger("audioscribe.TTS").warning("pyttsx3 not available, TTS will not work")


DEFAULT_NAME_HINTS: Tuple[str, ...] = ("Male", "David", "Google US English")

_LEADING_JUNK = re.compile(r"^[^A-Za-z]+")


class SpeechUnavailableError(RuntimeError):
    """The host has no usable speech synthesis."""


class SynthesisError(RuntimeError):
    """An utterance could not be handed to the speech engine."""


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    locale: str = ""


@dataclass
class VoicePreference:
    """
    Ranked voice choice: the first name hint that matches a voice in the
    wanted locale wins. No match means the platform default voice.
    """

    locale_prefix: str = "en"
    name_hints: Sequence[str] = field(default_factory=lambda: DEFAULT_NAME_HINTS)

    def select(self, voices: Sequence[Voice]) -> Optional[Voice]:
        prefix = self.locale_prefix.lower()
        candidates = [v for v in voices if v.locale.lower().startswith(prefix)]
        for hint in self.name_hints:
            for voice in candidates:
                if hint in voice.name:
                    return voice
        return None


class SpeechCapability(ABC):
    """
    Platform speech synthesis.

    Implementations call ``on_finished(utterance_id, ok)`` exactly once per
    utterance that ran (completed or errored), from any thread. Utterances
    dropped by ``cancel_all`` before they started are not reported.
    """

    def __init__(self):
        self.on_finished: Optional[Callable[[int, bool], None]] = None

    @abstractmethod
    def speak(self, utterance_id: int, text: str, rate: float, pitch: float,
              voice: Optional[Voice]) -> None:
        ...

    @abstractmethod
    def cancel_all(self) -> None:
        ...

    @abstractmethod
    def list_voices(self) -> List[Voice]:
        ...

    def shutdown(self) -> None:
        self.cancel_all()

    def _report(self, utterance_id: int, ok: bool) -> None:
        callback = self.on_finished
        if callback is not None:
            callback(utterance_id, ok)


def _voice_locale(raw_voice) -> str:
    """Best-effort locale for a pyttsx3 voice (drivers disagree on the format)."""
    for lang in getattr(raw_voice, "languages", None) or []:
        if isinstance(lang, bytes):
            lang = lang.decode("utf-8", errors="ignore")
        # espeak prefixes the language with a priority byte
        lang = _LEADING_JUNK.sub("", str(lang)).strip().replace("_", "-")
        if lang:
            return lang

    # SAPI5 voices carry no languages; fall back to the description
    name = f"{getattr(raw_voice, 'name', '')} {getattr(raw_voice, 'id', '')}".lower()
    if "english" in name or "en-us" in name or "en-gb" in name:
        return "en"
    return ""


class Pyttsx3Speech(SpeechCapability):
    """
    Offline speech through pyttsx3.
    One worker thread owns all engine work; utterances are queued.
    """

    def __init__(self, base_wpm: int = 200, volume: float = 0.9):
        super().__init__()
        self.logger = logging.getLogger("audioscribe.TTS")
        self.base_wpm = base_wpm
        self.volume = volume

        if pyttsx3 is None:
            raise SpeechUnavailableError("pyttsx3 library not installed")

        try:
            self.engine = pyttsx3.init()
        except Exception as e:
            raise SpeechUnavailableError(f"Failed to initialize TTS engine: {e}") from e

        self.engine.setProperty('volume', self.volume)
        self._default_voice_id = self.engine.getProperty('voice')
        self._voices = self._read_voices()

        self._queue: "queue.Queue[Optional[tuple]]" = queue.Queue()
        # Ids at or below the watermark were cancelled and must never be spoken
        self._lock = threading.Lock()
        self._latest_id = 0
        self._cancelled_upto = 0
        self._running = True
        self._thread = threading.Thread(target=self._worker_loop, daemon=True)
        self._thread.start()
        self.logger.info(f"TTS engine initialized ({len(self._voices)} voices)")

    # ---------- public API ----------

    def speak(self, utterance_id: int, text: str, rate: float, pitch: float,
              voice: Optional[Voice]) -> None:
        if not self._running:
            raise SynthesisError("TTS worker is shut down")
        with self._lock:
            self._latest_id = max(self._latest_id, utterance_id)
        self._queue.put((utterance_id, text, rate, pitch, voice))

    def cancel_all(self) -> None:
        """Drop queued utterances and stop the one being spoken."""
        with self._lock:
            self._cancelled_upto = self._latest_id
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        self.engine.stop()

    def list_voices(self) -> List[Voice]:
        return list(self._voices)

    def shutdown(self) -> None:
        if not self._running:
            return
        self._running = False
        self.cancel_all()
        self._queue.put(None)
        if self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self.logger.info("TTS service shut down")

    # ---------- internal ----------

    def _read_voices(self) -> List[Voice]:
        voices = []
        for raw in self.engine.getProperty('voices') or []:
            voices.append(Voice(id=raw.id, name=raw.name or raw.id, locale=_voice_locale(raw)))
        return voices

    def _apply(self, rate: float, pitch: float, voice: Optional[Voice]) -> None:
        self.engine.setProperty('rate', int(round(self.base_wpm * rate)))
        voice_id = voice.id if voice else self._default_voice_id
        if voice_id:
            self.engine.setProperty('voice', voice_id)
        if pitch != 1.0:
            # Only some drivers (espeak) know about pitch
            try:
                self.engine.setProperty('pitch', pitch)
            except (KeyError, AttributeError):
                self.logger.debug("Speech driver has no pitch control; ignoring pitch")

    def _is_cancelled(self, utterance_id: int) -> bool:
        with self._lock:
            return utterance_id <= self._cancelled_upto

    def _worker_loop(self):
        while self._running:
            try:
                item = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            if item is None:  # Exit signal
                break

            utterance_id, text, rate, pitch, voice = item
            if self._is_cancelled(utterance_id):
                continue
            ok = True
            try:
                self._apply(rate, pitch, voice)
                with self._lock:
                    # cancel_all may have run while the engine was being set up
                    if utterance_id <= self._cancelled_upto:
                        continue
                    self.engine.say(text)
                self.engine.runAndWait()
            except Exception as e:
                self.logger.error(f"Error during speech synthesis: {e}", exc_info=True)
                ok = False
            self._report(utterance_id, ok)


class SynthesisAdapter(QtCore.QObject):
    """
    Controller-facing side of speech synthesis.

    Allocates utterance ids, picks a voice per utterance and re-emits
    completions as ``utterance_finished(utterance_id, ok)``. Only the most
    recently spoken id is "in flight"; ``settle`` tells the receiver whether
    a completion still matters.
    """

    utterance_finished = QtCore.pyqtSignal(int, bool)

    def __init__(self, capability: Optional[SpeechCapability] = None,
                 preference: Optional[VoicePreference] = None):
        super().__init__()
        self.logger = logging.getLogger("audioscribe.TTS")
        self._capability = capability
        self.preference = preference if preference is not None else VoicePreference()
        self._next_id = 0
        self._in_flight: Optional[int] = None

        if capability is not None:
            capability.on_finished = self.utterance_finished.emit
        else:
            self.logger.error("No speech capability available; dictation is unsupported")

    @property
    def supported(self) -> bool:
        return self._capability is not None

    @property
    def in_flight(self) -> Optional[int]:
        return self._in_flight

    def speak(self, text: str, rate: float, pitch: float = 1.0) -> Optional[int]:
        """
        Start one utterance. Returns its id, or None when unsupported.
        Failing to hand the text to the engine is reported as a failed
        completion, never raised.
        """
        if self._capability is None:
            return None

        self._next_id += 1
        utterance_id = self._next_id
        self._in_flight = utterance_id

        voice = self.preference.select(self.voices())
        self.logger.debug(f"Speaking #{utterance_id}: '{text[:50]}' (rate={rate}, voice={voice.name if voice else 'default'})")
        try:
            self._capability.speak(utterance_id, text, rate, pitch, voice)
        except Exception as e:
            self.logger.error(f"Speech engine rejected utterance #{utterance_id}: {e}", exc_info=True)
            self.utterance_finished.emit(utterance_id, False)
        return utterance_id

    def cancel_all(self) -> None:
        self._in_flight = None
        if self._capability is not None:
            self._capability.cancel_all()

    def settle(self, utterance_id: int) -> bool:
        """Accept a completion if it belongs to the utterance in flight."""
        if utterance_id != self._in_flight:
            return False
        self._in_flight = None
        return True

    def voices(self) -> List[Voice]:
        if self._capability is None:
            return []
        try:
            return self._capability.list_voices()
        except Exception as e:
            self.logger.warning(f"Could not list voices: {e}")
            return []

    def shutdown(self) -> None:
        self._in_flight = None
        if self._capability is not None:
            self._capability.shutdown()
