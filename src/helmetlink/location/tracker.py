"""
Location tracker.

Requests permission, then mirrors the platform location stream: every sample
overwrites the stored fix (no smoothing, filtering or staleness checks). A denied
permission leaves the fix absent for good; that is a steady state, not an error.
"""

from __future__ import annotations

import logging

from helmetlink.core.dispatch import UpdateQueue
from helmetlink.core.observable import Observable
from helmetlink.domain.models import LocationFix
from helmetlink.providers.base import LocationProvider, LocationSample

logger = logging.getLogger(__name__)


class LocationTracker:
    def __init__(self, provider: LocationProvider, queue: UpdateQueue):
        self._provider = provider
        self._queue = queue
        self._active = False
        self.permission_denied = False
        self.fix: Observable[LocationFix | None] = Observable(None, name="location.fix")

    @property
    def current(self) -> LocationFix | None:
        return self.fix.value

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> bool:
        """Ask for permission and start streaming; returns False if permission is denied."""
        if self._active:
            return True
        if not self._provider.request_permission():
            self.permission_denied = True
            logger.info("Location permission denied; distance stays unavailable")
            return False
        self.permission_denied = False
        self._active = True
        self._provider.start_updates(self._on_sample)
        logger.info("Location updates started")
        return True

    def stop(self) -> None:
        if not self._active:
            return
        self._active = False
        self._provider.stop_updates()
        logger.info("Location updates stopped")

    def __enter__(self) -> "LocationTracker":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _on_sample(self, sample: LocationSample) -> None:
        if self._active:
            self._queue.post(self._apply, sample)

    def _apply(self, sample: LocationSample) -> None:
        if not self._active:
            return
        if sample.timestamp is None:
            fix = LocationFix(latitude=sample.latitude, longitude=sample.longitude)
        else:
            fix = LocationFix(latitude=sample.latitude, longitude=sample.longitude, timestamp=sample.timestamp)
        self.fix.publish(fix)
