"""
Geospatial helpers.

We keep a tiny geometry layer here so the navigation code can do distance calculations
without pulling in heavier GIS dependencies.
"""

from __future__ import annotations

from math import asin, cos, radians, sin, sqrt
from typing import Protocol

EARTH_RADIUS_M = 6_371_000
KM_THRESHOLD_M = 1000


class LatLon(Protocol):
    """Anything carrying decimal-degree `lat` / `lon` attributes."""

    @property
    def lat(self) -> float: ...

    @property
    def lon(self) -> float: ...


def haversine_m(a: LatLon, b: LatLon) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def format_distance(meters: float) -> str:
    """Render a distance for the distance label.

    Whole meters below 1 km (`"500 m"`), kilometers with two decimals from 1 km up
    (`"1.50 km"`). The threshold applies to the raw reading, so 999.6 m still
    renders in meters (`"1000 m"`).
    """
    if meters < KM_THRESHOLD_M:
        return f"{round(meters)} m"
    return f"{meters / 1000:.2f} km"
