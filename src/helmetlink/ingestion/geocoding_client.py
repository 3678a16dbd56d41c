"""
Geocoding client (OpenStreetMap Nominatim).

This module is responsible only for:
- turning a free-text query into Nominatim `/search` parameters (optionally biased
  towards the user's position with a viewbox),
- spacing requests per the Nominatim usage policy,
- retrying 429/5xx and transport errors with backoff,
- parsing the response into ranked `GeocodeCandidate`s.

Choosing a candidate and computing distances is the resolver's job; see
`helmetlink.navigation.resolver`.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from helmetlink.config.settings import Settings
from helmetlink.core.http import get_json
from helmetlink.core.rate_limit import RequestSpacer
from helmetlink.domain.models import GeocodeCandidate, GeoPoint
from helmetlink.errors import GeocodingError, ProviderUnavailableError

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class NominatimGeocoder:
    """Nominatim search client; blocking, meant to run on the resolver's worker pool."""

    def __init__(self, settings: Settings, spacer: RequestSpacer | None = None):
        self._settings = settings
        self._spacer = spacer or RequestSpacer(settings.geocoding.min_request_interval_seconds)

    @staticmethod
    def _parse_retry_after_seconds(value: str | None) -> float | None:
        if not value:
            return None
        try:
            seconds = float(value)
        except ValueError:
            return None
        return seconds if seconds >= 0 else None

    def _build_params(self, query: str, near: GeoPoint | None) -> dict[str, Any]:
        cfg = self._settings.geocoding
        params: dict[str, Any] = {"q": query, "format": "jsonv2", "limit": cfg.limit}
        if cfg.language:
            params["accept-language"] = cfg.language
        if cfg.country_codes:
            params["countrycodes"] = ",".join(c.strip().lower() for c in cfg.country_codes if c.strip())
        if cfg.email:
            params["email"] = cfg.email
        radius = float(cfg.bias_radius_deg)
        if near is not None and radius > 0:
            # viewbox is <left>,<top>,<right>,<bottom>; bounded=0 keeps it a preference, not a filter.
            left = max(-180.0, near.lon - radius)
            right = min(180.0, near.lon + radius)
            top = min(90.0, near.lat + radius)
            bottom = max(-90.0, near.lat - radius)
            params["viewbox"] = f"{left:.6f},{top:.6f},{right:.6f},{bottom:.6f}"
            params["bounded"] = 0
        return params

    def _get_json(self, params: dict[str, Any]) -> Any:
        """GET the search endpoint with spacing + retry/backoff for 429/transient errors."""
        cfg = self._settings.geocoding
        max_attempts = int(cfg.retry.max_attempts)
        base_delay_seconds = float(cfg.retry.base_delay_seconds)
        max_delay_seconds = float(cfg.retry.max_delay_seconds)
        headers = {"User-Agent": cfg.user_agent}

        for attempt in range(max_attempts + 1):
            try:
                self._spacer.wait()
                return get_json(
                    cfg.base_url,
                    params=params,
                    headers=headers,
                    timeout_seconds=self._settings.app.http_timeout_seconds,
                )
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status not in RETRYABLE_STATUSES:
                    raise GeocodingError(f"Geocoder rejected the request (HTTP {status}).") from exc
                if attempt >= max_attempts:
                    raise ProviderUnavailableError(
                        f"Geocoder unavailable (HTTP {status}).", status_code=status
                    ) from exc

                delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
                retry_after = self._parse_retry_after_seconds(exc.response.headers.get("Retry-After"))
                if retry_after is not None:
                    delay = min(max_delay_seconds, max(delay, retry_after))
                logger.warning(
                    "Geocoder request failed with status=%s; retrying in %.2fs (attempt %s/%s)",
                    status,
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(delay)
            except httpx.TransportError as exc:
                if attempt >= max_attempts:
                    raise ProviderUnavailableError(f"Geocoder unreachable: {exc}") from exc
                delay = min(max_delay_seconds, base_delay_seconds * (2**attempt))
                logger.warning(
                    "Geocoder transport error; retrying in %.2fs (attempt %s/%s)",
                    delay,
                    attempt + 1,
                    max_attempts,
                )
                time.sleep(delay)
            except ValueError as exc:
                raise GeocodingError("Geocoder returned a non-JSON response.") from exc

        raise ProviderUnavailableError("Geocoder request failed without a response.")

    def search(self, query: str, *, near: GeoPoint | None = None) -> list[GeocodeCandidate]:
        """Return ranked candidates for `query` (empty list when nothing matches)."""
        query = query.strip()
        if not query:
            return []
        logger.info("Geocoding %r", query)
        payload = self._get_json(self._build_params(query, near))
        if not isinstance(payload, list):
            raise GeocodingError("Unexpected geocoder payload; expected a list of places.")
        return parse_candidates(payload)


def parse_candidates(payload: list[Any]) -> list[GeocodeCandidate]:
    """Convert Nominatim `jsonv2` items into candidates, skipping malformed entries."""
    out: list[GeocodeCandidate] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        try:
            coordinate = GeoPoint(lat=float(item["lat"]), lon=float(item["lon"]))
            name = str(item.get("display_name") or item.get("name") or "").strip()
        except (KeyError, TypeError, ValueError):
            continue
        if not name:
            continue
        place_id = item.get("place_id")
        out.append(
            GeocodeCandidate(
                display_name=name,
                coordinate=coordinate,
                category=item.get("category") or item.get("class"),
                source_id=str(place_id) if place_id is not None else None,
            )
        )
    return out
