# audioscribe/core/timeline.py

"""
Timeline manager for AudioScribe.

- Keeps a bounded in-memory list of playback events (time + kind + text)
- Controller pushes events, hosts read them for diagnostics
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List


@dataclass
class TimelineEvent:
    timestamp: datetime
    kind: str      # "state", "speak", "error", "config", etc.
    text: str


class TimelineManager:
    def __init__(self, max_events: int = 500):
        self._events: Deque[TimelineEvent] = deque(maxlen=max_events)

    def add_event(self, kind: str, text: str) -> TimelineEvent:
        ev = TimelineEvent(timestamp=datetime.now(), kind=kind, text=text)
        self._events.append(ev)
        return ev

    def get_events(self, kind: str | None = None) -> List[TimelineEvent]:
        if kind is None:
            return list(self._events)
        return [ev for ev in self._events if ev.kind == kind]

    def clear(self) -> None:
        self._events.clear()
