"""
Simulated platform providers.

Used by the CLI demo and the API, which run without a phone's media session or GPS.
They behave like the real platform: listeners are only notified while notifications
are enabled, and location samples only flow between `start_updates` / `stop_updates`.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable

from helmetlink.providers.base import LocationSample, NowPlayingItem

logger = logging.getLogger(__name__)


class SimulatedMediaSession:
    """In-memory media player cycling through a fixed playlist."""

    def __init__(self, playlist: Iterable[NowPlayingItem] = ()):
        self._playlist = list(playlist)
        self._index = 0
        self._playing = False
        self._notifying = False
        self._listeners: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    def add_now_playing_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._listeners.append(callback)

    def remove_now_playing_listener(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def begin_notifications(self) -> None:
        self._notifying = True

    def end_notifications(self) -> None:
        self._notifying = False

    def now_playing_item(self) -> NowPlayingItem | None:
        if not self._playlist:
            return None
        return self._playlist[self._index]

    def is_playing(self) -> bool:
        return self._playing

    def play(self) -> None:
        self._playing = True

    def pause(self) -> None:
        self._playing = False

    def skip(self) -> None:
        """Advance to the next playlist item and post a now-playing change."""
        if self._playlist:
            self._index = (self._index + 1) % len(self._playlist)
        self._notify()

    def _notify(self) -> None:
        if not self._notifying:
            return
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener()


class SimulatedLocationProvider:
    """Location stream fed by `push()`; emits `start` as soon as updates begin."""

    def __init__(self, start: tuple[float, float] | None = None, *, permission_granted: bool = True):
        self._start = start
        self._permission_granted = permission_granted
        self._callback: Callable[[LocationSample], None] | None = None

    def request_permission(self) -> bool:
        return self._permission_granted

    def start_updates(self, callback: Callable[[LocationSample], None]) -> None:
        self._callback = callback
        if self._start is not None:
            self.push(*self._start)

    def stop_updates(self) -> None:
        self._callback = None

    @property
    def updating(self) -> bool:
        return self._callback is not None

    def push(self, latitude: float, longitude: float) -> bool:
        """Deliver a sample; returns False when nobody is listening."""
        sample = LocationSample(latitude, longitude, datetime.now(timezone.utc))
        callback = self._callback
        if callback is None:
            logger.debug("Dropping simulated fix (%.5f, %.5f): updates stopped", latitude, longitude)
            return False
        callback(sample)
        return True
