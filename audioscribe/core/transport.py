# audioscribe/core/transport.py

"""
External transport: mirror the playback controller onto a media-control
surface (hardware / keyboard media keys) and route its actions back.

The surface is optional. Without one the bridge still drives the liveness
signal, and the on-screen transport keeps working either way.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional

from PyQt6 import QtCore

from .liveness import LivenessSignal

if TYPE_CHECKING:
    from ..controller import PlaybackController


IDLE_ARTIST = "Ready to dictate"


class TransportAction(Enum):
    PLAY = "play"
    PAUSE = "pause"
    PREVIOUS = "previoustrack"
    NEXT = "nexttrack"


@dataclass(frozen=True)
class NowPlaying:
    title: str
    artist: str        # current unit text
    album: str
    artwork: Optional[str]
    playing: bool


class TransportSurface(ABC):
    @abstractmethod
    def set_action_handler(self, action: TransportAction, handler: Optional[Callable[[], None]]) -> None:
        ...

    @abstractmethod
    def update(self, now_playing: NowPlaying) -> None:
        ...

    def close(self) -> None:
        pass


class _MediaKeyFilter(QtCore.QObject):
    def __init__(self, surface: "MediaKeySurface"):
        super().__init__()
        self._surface = surface

    def eventFilter(self, obj, event):
        if event.type() == QtCore.QEvent.Type.KeyPress:
            return self._surface.handle_key(int(event.key()))
        return False


_KEY_ACTIONS = {
    int(QtCore.Qt.Key.Key_MediaPlay.value): TransportAction.PLAY,
    int(QtCore.Qt.Key.Key_MediaPause.value): TransportAction.PAUSE,
    int(QtCore.Qt.Key.Key_MediaPrevious.value): TransportAction.PREVIOUS,
    int(QtCore.Qt.Key.Key_MediaNext.value): TransportAction.NEXT,
}
_KEY_TOGGLE = int(QtCore.Qt.Key.Key_MediaTogglePlayPause.value)


class MediaKeySurface(TransportSurface):
    """
    Media keys delivered to the Qt application.

    Installs an application-wide event filter; play/pause toggle keys are
    resolved against the last published playing flag.
    """

    def __init__(self, app: Optional[QtCore.QCoreApplication] = None):
        self.logger = logging.getLogger("audioscribe.Transport")
        self._handlers: Dict[TransportAction, Callable[[], None]] = {}
        self.now_playing: Optional[NowPlaying] = None

        self._app = app if app is not None else QtCore.QCoreApplication.instance()
        self._filter = _MediaKeyFilter(self)
        if self._app is not None:
            self._app.installEventFilter(self._filter)
        else:
            self.logger.warning("No Qt application; media keys will not be delivered")

    def set_action_handler(self, action: TransportAction, handler: Optional[Callable[[], None]]) -> None:
        if handler is None:
            self._handlers.pop(action, None)
        else:
            self._handlers[action] = handler

    def update(self, now_playing: NowPlaying) -> None:
        self.now_playing = now_playing

    def handle_key(self, key: int) -> bool:
        """Dispatch a media key. Returns True if it was consumed."""
        if key == _KEY_TOGGLE:
            playing = self.now_playing is not None and self.now_playing.playing
            action = TransportAction.PAUSE if playing else TransportAction.PLAY
        else:
            action = _KEY_ACTIONS.get(key)
            if action is None:
                return False

        handler = self._handlers.get(action)
        if handler is None:
            return False
        self.logger.info(f"Media key: {action.value}")
        handler()
        return True

    def close(self) -> None:
        if self._app is not None:
            self._app.removeEventFilter(self._filter)
        self._handlers.clear()


class TransportBridge:
    """
    Keeps a surface and a liveness signal in step with a PlaybackController.

    Only reads controller state and calls its public operations.
    """

    def __init__(self,
                 controller: "PlaybackController",
                 surface: Optional[TransportSurface] = None,
                 liveness: Optional[LivenessSignal] = None,
                 title: str = "AudioScribe Dictation",
                 album: str = "EchoNotes AI",
                 artwork: Optional[str] = None):
        self.logger = logging.getLogger("audioscribe.Transport")
        self.controller = controller
        self.surface = surface
        self.liveness = liveness
        self.title = title
        self.album = album
        self.artwork = artwork

        if surface is not None:
            surface.set_action_handler(TransportAction.PLAY, controller.play)
            surface.set_action_handler(TransportAction.PAUSE, controller.pause)
            surface.set_action_handler(TransportAction.PREVIOUS, controller.previous)
            surface.set_action_handler(TransportAction.NEXT, controller.next)

        controller.state_changed.connect(self._on_state_changed)
        controller.index_changed.connect(self._publish)
        controller.units_changed.connect(self._publish)
        self._publish()

    def now_playing(self) -> NowPlaying:
        return NowPlaying(
            title=self.title,
            artist=self.controller.current_unit or IDLE_ARTIST,
            album=self.album,
            artwork=self.artwork,
            playing=self.controller.is_playing,
        )

    def _on_state_changed(self, *_):
        if self.liveness is not None:
            if self.controller.is_playing:
                self.liveness.start()
            else:
                self.liveness.stop()
        self._publish()

    def _publish(self, *_):
        if self.surface is not None:
            self.surface.update(self.now_playing())

    def close(self) -> None:
        for signal, slot in (
            (self.controller.state_changed, self._on_state_changed),
            (self.controller.index_changed, self._publish),
            (self.controller.units_changed, self._publish),
        ):
            try:
                signal.disconnect(slot)
            except TypeError:
                # already disconnected
                pass
        if self.liveness is not None:
            self.liveness.stop()
        if self.surface is not None:
            for action in TransportAction:
                self.surface.set_action_handler(action, None)
            self.surface.close()
