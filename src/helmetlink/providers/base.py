"""
Provider interfaces.

The platform supplies the media session, the location stream and the geocoder; the
components only talk to these protocols. Callbacks may arrive on any thread: the
components re-post them onto the update queue before touching published state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from helmetlink.domain.models import GeocodeCandidate, GeoPoint


@dataclass(frozen=True)
class NowPlayingItem:
    """What the media session reports for the current item; fields may be missing."""

    title: str | None = None
    artist: str | None = None


@dataclass(frozen=True)
class LocationSample:
    """One raw sample from the location stream."""

    latitude: float
    longitude: float
    timestamp: datetime | None = None


class MediaSessionProvider(Protocol):
    def add_now_playing_listener(self, callback: Callable[[], None]) -> None: ...

    def remove_now_playing_listener(self, callback: Callable[[], None]) -> None: ...

    def begin_notifications(self) -> None: ...

    def end_notifications(self) -> None: ...

    def now_playing_item(self) -> NowPlayingItem | None: ...

    def is_playing(self) -> bool: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...


class LocationProvider(Protocol):
    def request_permission(self) -> bool: ...

    def start_updates(self, callback: Callable[[LocationSample], None]) -> None: ...

    def stop_updates(self) -> None: ...


class GeocodingProvider(Protocol):
    def search(self, query: str, *, near: GeoPoint | None = None) -> list[GeocodeCandidate]:
        """Return candidates best-first; raise `GeocodingError` when the lookup fails."""
        ...
