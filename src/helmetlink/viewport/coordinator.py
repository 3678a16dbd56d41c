"""
Viewport coordinator.

Fans the four components' published values into one `ViewModel` and republishes it
synchronously whenever any upstream value changes. The only thing it remembers is
where the map is centered: the fallback coordinate until a destination is committed,
then the most recent destination's coordinate (kept across disconnects and clears).
"""

from __future__ import annotations

import logging
from typing import Any

from helmetlink.core.observable import Observable, Subscription
from helmetlink.device.connection import ConnectionState
from helmetlink.domain.models import ConnectionStatus, GeoPoint, MapRegion, Marker, ViewModel
from helmetlink.location.tracker import LocationTracker
from helmetlink.media.now_playing import NowPlayingMirror
from helmetlink.navigation.resolver import DestinationResolver

logger = logging.getLogger(__name__)

# status -> (status text, indicator color, action button label)
STATUS_PRESENTATION: dict[ConnectionStatus, tuple[str, str, str]] = {
    ConnectionStatus.DISCONNECTED: ("Helmet Disconnected", "red", "Connect to Helmet"),
    ConnectionStatus.CONNECTING: ("Connecting to Helmet…", "orange", "Connecting…"),
    ConnectionStatus.CONNECTED: ("Helmet Connected", "green", "Disconnect Helmet"),
}


class ViewportCoordinator:
    def __init__(
        self,
        connection: ConnectionState,
        now_playing: NowPlayingMirror,
        location: LocationTracker,
        resolver: DestinationResolver,
        *,
        fallback_center: GeoPoint,
        lat_delta: float = 0.05,
        lon_delta: float = 0.05,
    ):
        self._connection = connection
        self._now_playing = now_playing
        self._location = location
        self._resolver = resolver
        self._map_center = fallback_center
        self._lat_delta = lat_delta
        self._lon_delta = lon_delta
        self._centered_on: str | None = None

        self.view: Observable[ViewModel] = Observable(self._build(), name="viewport.view")
        self._subscriptions: list[Subscription] = [
            connection.status.subscribe(self._refresh),
            now_playing.track.subscribe(self._refresh),
            location.fix.subscribe(self._refresh),
            resolver.state.subscribe(self._refresh),
        ]

    @property
    def current(self) -> ViewModel:
        return self.view.value

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()

    def refresh(self) -> ViewModel:
        """Rebuild the view model (also picks up the non-observable permission flag)."""
        self.view.publish(self._build())
        return self.view.value

    def _refresh(self, _changed: Any = None) -> None:
        self.refresh()

    def _build(self) -> ViewModel:
        status = self._connection.current
        status_text, status_color, action_label = STATUS_PRESENTATION[status]

        destination = self._resolver.destination
        if destination is not None and destination.id != self._centered_on:
            self._centered_on = destination.id
            self._map_center = destination.coordinate
            logger.debug("Map recentered on %r", destination.display_name)

        marker = None
        if destination is not None:
            marker = Marker(id=destination.id, title=destination.display_name, coordinate=destination.coordinate)

        fix = self._location.current
        distance = self._resolver.distance
        return ViewModel(
            connection_status=status,
            status_text=status_text,
            status_color=status_color,
            connect_action_label=action_label,
            track=self._now_playing.current,
            user_location=fix.point if fix is not None else None,
            location_permission_denied=self._location.permission_denied,
            map=MapRegion(center=self._map_center, lat_delta=self._lat_delta, lon_delta=self._lon_delta),
            marker=marker,
            distance_label=distance.label if distance is not None else None,
            last_search=self._resolver.last_outcome,
        )
