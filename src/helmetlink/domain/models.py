"""
Domain models (Pydantic).

These types are the stable "contract" between the components and the rendering layer:
- leaf values published by components (`TrackInfo`, `LocationFix`, `Destination`)
- derived values (`DistanceReading`, `NavigationState`)
- the aggregated read model the UI binds to (`ViewModel`)

All models are frozen: a component replaces a value wholesale instead of mutating it,
which keeps `Observable` change detection a plain equality check.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from helmetlink.core.geo import format_distance, haversine_m

PLACEHOLDER_TITLE = "Unknown Song"
PLACEHOLDER_ARTIST = "Unknown Artist"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class GeoPoint(_Frozen):
    """A geographic point in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class TrackInfo(_Frozen):
    """Now-playing snapshot mirrored from the media session."""

    title: str = PLACEHOLDER_TITLE
    artist: str = PLACEHOLDER_ARTIST
    is_playing: bool = False


class LocationFix(_Frozen):
    """Most recent location sample."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(lat=self.latitude, lon=self.longitude)


class GeocodeCandidate(_Frozen):
    """One ranked answer from a geocoding provider."""

    display_name: str
    coordinate: GeoPoint
    category: str | None = None
    source_id: str | None = None


class Destination(_Frozen):
    """The single live destination; `id` is fresh for every committed search result."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    display_name: str
    coordinate: GeoPoint


class DistanceReading(_Frozen):
    """Great-circle distance from the user to the destination, plus its label text."""

    meters: float = Field(..., ge=0)
    label: str

    @classmethod
    def between(cls, fix: LocationFix, destination: Destination) -> "DistanceReading":
        meters = haversine_m(fix.point, destination.coordinate)
        return cls(meters=meters, label=format_distance(meters))


SearchStatus = Literal["ok", "no_candidates", "provider_unavailable", "superseded"]


class SearchOutcome(_Frozen):
    """Reported result of one `search()` call."""

    request_id: int
    query: str
    status: SearchStatus
    destination: Destination | None = None
    error: str | None = None
    status_code: int | None = None


class NavigationState(_Frozen):
    """Destination, its distance and the latest search outcome, published as one value.

    Subscribers never see a new destination next to a stale outcome, or the other way
    round.
    """

    destination: Destination | None = None
    distance: DistanceReading | None = None
    last_outcome: SearchOutcome | None = None


class MapRegion(_Frozen):
    center: GeoPoint
    lat_delta: float = 0.05
    lon_delta: float = 0.05


class Marker(_Frozen):
    id: str
    title: str
    coordinate: GeoPoint
    tint: str = "red"


class ViewModel(_Frozen):
    """Everything the rendering layer binds to, as one consistent snapshot."""

    connection_status: ConnectionStatus
    status_text: str
    status_color: str
    connect_action_label: str
    track: TrackInfo
    user_location: GeoPoint | None = None
    location_permission_denied: bool = False
    map: MapRegion
    marker: Marker | None = None
    distance_label: str | None = None
    last_search: SearchOutcome | None = None
