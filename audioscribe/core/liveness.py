# audioscribe/core/liveness.py

"""
Liveness signal: a looping, silent output stream.

Media-key surfaces tend to detach from an app that is not producing audio.
Between dictation units nothing is sounding, so while a session is playing
we keep an output stream open that only ever writes zeros. It carries no
information and is never treated as a playback unit.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

try:
    import sounddevice as sd
except (ImportError, OSError):
    # OSError: the module imports but PortAudio itself is missing
    sd = None
    logging.getLogger("audioscribe.Liveness").warning("sounddevice not available, liveness signal disabled")


class LivenessSignal(ABC):
    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...

    @property
    @abstractmethod
    def active(self) -> bool:
        ...


class SilentLoop(LivenessSignal):
    """Silent sounddevice output stream, open only while dictation plays."""

    BLOCK_SIZE = 1024

    def __init__(self, sample_rate: int = 8000, channels: int = 1):
        self.logger = logging.getLogger("audioscribe.Liveness")
        self.sample_rate = sample_rate
        self.channels = channels
        self._silence = np.zeros((self.BLOCK_SIZE, channels), dtype=np.float32)
        self._stream = None

    @property
    def active(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        if self._stream is not None:
            return
        if sd is None:
            return

        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                blocksize=self.BLOCK_SIZE,
                callback=self._fill,
            )
            stream.start()
        except Exception as e:
            # best effort: playback carries on without the signal
            self.logger.error(f"Could not open silent output stream: {e}")
            return

        self._stream = stream
        self.logger.debug("Liveness signal started")

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            self.logger.error(f"Error closing silent output stream: {e}")
        self.logger.debug("Liveness signal stopped")

    def _fill(self, outdata: np.ndarray, frames: int, time_info, status: Optional[object]) -> None:
        outdata[:] = self._silence[:frames]
