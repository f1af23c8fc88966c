# audioscribe/core/gap_timer.py

"""
One-shot timer for the silent gap between dictation units.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from PyQt6 import QtCore


class GapTimer(ABC):
    """At most one pending gap; starting a new one replaces the old one."""

    @abstractmethod
    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        ...

    @abstractmethod
    def cancel(self) -> None:
        ...

    @property
    @abstractmethod
    def pending(self) -> bool:
        ...


class QtGapTimer(GapTimer):
    """
    Single-shot QTimer. Needs a running Qt event loop to fire.
    cancel() stops the timer synchronously, so a cancelled gap never fires.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        self._timer = QtCore.QTimer(parent)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)
        self._callback: Optional[Callable[[], None]] = None

    def start(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._timer.stop()
        self._callback = callback
        self._timer.start(max(0, int(delay_ms)))

    def cancel(self) -> None:
        self._timer.stop()
        self._callback = None

    @property
    def pending(self) -> bool:
        return self._timer.isActive()

    def _on_timeout(self):
        callback, self._callback = self._callback, None
        if callback is not None:
            callback()
