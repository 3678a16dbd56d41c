"""
Session wiring.

`HelmetSession` owns one update queue and builds the connection state, now-playing
mirror, location tracker, destination resolver and viewport coordinator on top of it.
`start()` / `stop()` acquire and release the platform subscriptions; both must run on
the thread that drains the queue.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor

from helmetlink.config.settings import Settings
from helmetlink.core.dispatch import UpdateQueue
from helmetlink.device.connection import ConnectionState
from helmetlink.domain.models import GeoPoint, ViewModel
from helmetlink.ingestion.geocoding_client import NominatimGeocoder
from helmetlink.location.tracker import LocationTracker
from helmetlink.media.now_playing import NowPlayingMirror
from helmetlink.navigation.resolver import DestinationResolver
from helmetlink.providers.base import (
    GeocodingProvider,
    LocationProvider,
    MediaSessionProvider,
    NowPlayingItem,
)
from helmetlink.providers.simulated import SimulatedLocationProvider, SimulatedMediaSession
from helmetlink.viewport.coordinator import ViewportCoordinator

logger = logging.getLogger(__name__)


class HelmetSession:
    def __init__(
        self,
        settings: Settings,
        *,
        media: MediaSessionProvider,
        location: LocationProvider,
        geocoder: GeocodingProvider,
        queue: UpdateQueue | None = None,
        executor: Executor | None = None,
    ):
        self.settings = settings
        self.queue = queue or UpdateQueue()
        self.media_provider = media
        self.location_provider = location

        self.connection = ConnectionState(
            self.queue, connect_delay_seconds=settings.connection.connect_delay_seconds
        )
        self.now_playing = NowPlayingMirror(media, self.queue)
        self.location = LocationTracker(location, self.queue)
        self.resolver = DestinationResolver(
            geocoder,
            self.location,
            self.queue,
            executor=executor,
            max_workers=settings.geocoding.max_workers,
        )
        center = settings.map.fallback_center
        self.viewport = ViewportCoordinator(
            self.connection,
            self.now_playing,
            self.location,
            self.resolver,
            fallback_center=GeoPoint(lat=center.lat, lon=center.lon),
            lat_delta=settings.map.span.lat_delta,
            lon_delta=settings.map.span.lon_delta,
        )
        self._started = False

    @property
    def view(self) -> ViewModel:
        return self.viewport.current

    def start(self) -> None:
        if self._started:
            return
        self.now_playing.start()
        self.location.start()
        self.viewport.refresh()
        self._started = True
        logger.info("Helmet session started")

    def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        self.location.stop()
        self.now_playing.stop()
        self.connection.disconnect()
        logger.info("Helmet session stopped")

    def close(self) -> None:
        """Stop and release everything; the session cannot be restarted afterwards."""
        self.stop()
        self.viewport.close()
        self.resolver.close()

    def __enter__(self) -> "HelmetSession":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def build_simulated_session(
    settings: Settings,
    *,
    geocoder: GeocodingProvider | None = None,
    queue: UpdateQueue | None = None,
) -> HelmetSession:
    """Session backed by the simulated media/location providers and the HTTP geocoder."""
    sim = settings.simulation
    media = SimulatedMediaSession(NowPlayingItem(title=t.title, artist=t.artist) for t in sim.playlist)
    location = SimulatedLocationProvider(
        (sim.start_location.lat, sim.start_location.lon),
        permission_granted=sim.location_permission,
    )
    return HelmetSession(
        settings,
        media=media,
        location=location,
        geocoder=geocoder or NominatimGeocoder(settings),
        queue=queue,
    )
