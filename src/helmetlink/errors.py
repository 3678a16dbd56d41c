"""
Exception types raised by provider clients.

Components never let these escape onto the update queue: the destination resolver
turns them into a reported `SearchOutcome` so the presentation layer can tell the user.
"""

from __future__ import annotations


class HelmetLinkError(Exception):
    """Base class for all HelmetLink errors."""


class GeocodingError(HelmetLinkError):
    """A geocoding lookup could not produce a usable answer."""


class ProviderUnavailableError(GeocodingError):
    """The geocoding provider could not be reached (transport error, 429/5xx after retries)."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
