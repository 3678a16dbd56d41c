"""
Now-playing mirror.

Keeps a local `TrackInfo` in step with the platform media session. The session only
says "something changed"; the mirror re-reads title/artist on every notification and
publishes a fresh snapshot. No current item is a normal state and publishes the
placeholder pair.
"""

from __future__ import annotations

import logging

from helmetlink.core.dispatch import UpdateQueue
from helmetlink.core.observable import Observable
from helmetlink.domain.models import PLACEHOLDER_ARTIST, PLACEHOLDER_TITLE, TrackInfo
from helmetlink.providers.base import MediaSessionProvider

logger = logging.getLogger(__name__)


class NowPlayingMirror:
    """Read-through cache of the media session's current track.

    Use as a context manager (or call `start()` / `stop()`) so the notification
    subscription is always released.
    """

    def __init__(self, provider: MediaSessionProvider, queue: UpdateQueue):
        self._provider = provider
        self._queue = queue
        self._active = False
        self.track: Observable[TrackInfo] = Observable(TrackInfo(), name="now_playing.track")

    @property
    def current(self) -> TrackInfo:
        return self.track.value

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            return
        self._provider.add_now_playing_listener(self._on_now_playing_changed)
        self._provider.begin_notifications()
        self._active = True
        logger.info("Now-playing notifications registered")
        self.refresh()

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._provider.end_notifications()
        self._provider.remove_now_playing_listener(self._on_now_playing_changed)
        logger.info("Now-playing notifications released")

    def __enter__(self) -> "NowPlayingMirror":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _on_now_playing_changed(self) -> None:
        # Platform thread: hop onto the update queue before reading or publishing.
        if self._active:
            self._queue.post(self._refresh_if_active)

    def _refresh_if_active(self) -> None:
        if self._active:
            self.refresh()

    def refresh(self) -> TrackInfo:
        """Re-read the media session and publish the result."""
        item = self._provider.now_playing_item()
        playing = bool(self._provider.is_playing())
        if item is None:
            info = TrackInfo(is_playing=playing)
        else:
            info = TrackInfo(
                title=item.title or PLACEHOLDER_TITLE,
                artist=item.artist or PLACEHOLDER_ARTIST,
                is_playing=playing,
            )
        if self.track.publish(info):
            logger.debug("Now playing: %s - %s (playing=%s)", info.title, info.artist, info.is_playing)
        return info

    def toggle_playback(self) -> TrackInfo:
        """Pause when playing, play otherwise (mini-player button)."""
        if self._provider.is_playing():
            self._provider.pause()
        else:
            self._provider.play()
        return self.refresh()
