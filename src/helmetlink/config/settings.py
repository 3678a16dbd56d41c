# src/helmetlink/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/helmetlink/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `HELMETLINK_CONFIG_PATH` (replaces the packaged defaults)
- a small whitelist of environment variables (e.g., `HELMETLINK_LOG_LEVEL`)

Design rule:
- Tuning knobs (timer delays, geocoder endpoint, fallback map center) live in YAML,
  not hard-coded in component logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from helmetlink.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `helmetlink.config`."""
    text = resources.files("helmetlink.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "HelmetLink"
    http_timeout_seconds: float = 10
    log_level: str = "INFO"


class ConnectionSettings(BaseModel):
    connect_delay_seconds: float = Field(2.0, ge=0)


class CoordinateSettings(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class MapSpanSettings(BaseModel):
    lat_delta: float = Field(0.05, gt=0)
    lon_delta: float = Field(0.05, gt=0)


class MapSettings(BaseModel):
    fallback_center: CoordinateSettings = Field(
        default_factory=lambda: CoordinateSettings(lat=28.6139, lon=77.2090)
    )
    span: MapSpanSettings = Field(default_factory=MapSpanSettings)


class RetrySettings(BaseModel):
    max_attempts: int = Field(2, ge=0)
    base_delay_seconds: float = Field(0.5, ge=0)
    max_delay_seconds: float = Field(4.0, ge=0)


class GeocodingSettings(BaseModel):
    base_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "helmetlink/0.1.0 (+https://local)"
    email: str | None = None
    limit: int = Field(5, ge=1, le=40)
    language: str | None = "en"
    country_codes: list[str] = Field(default_factory=list)
    # Half-width (degrees) of the viewbox sent around the user's fix; 0 disables biasing.
    bias_radius_deg: float = Field(0.5, ge=0)
    min_request_interval_seconds: float = Field(1.0, ge=0)
    max_workers: int = Field(2, ge=1)
    retry: RetrySettings = Field(default_factory=RetrySettings)


class SimulatedTrack(BaseModel):
    title: str | None = None
    artist: str | None = None


class SimulationSettings(BaseModel):
    start_location: CoordinateSettings = Field(
        default_factory=lambda: CoordinateSettings(lat=28.6139, lon=77.2090)
    )
    location_permission: bool = True
    playlist: list[SimulatedTrack] = Field(default_factory=list)


class ApiSettings(BaseModel):
    cors_origins: list[str] = Field(default_factory=list)
    call_timeout_seconds: float = Field(5.0, gt=0)
    search_wait_seconds: float = Field(10.0, ge=0)
    pump_interval_seconds: float = Field(0.25, gt=0)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: the whitelist is deliberately small; everything else goes through YAML.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("HELMETLINK_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    geocoder_url = os.getenv("HELMETLINK_GEOCODER_URL")
    if geocoder_url:
        data.setdefault("geocoding", {})["base_url"] = geocoder_url

    geocoder_email = os.getenv("HELMETLINK_GEOCODER_EMAIL")
    if geocoder_email:
        data.setdefault("geocoding", {})["email"] = geocoder_email

    connect_delay = os.getenv("HELMETLINK_CONNECT_DELAY_SECONDS")
    if connect_delay:
        data.setdefault("connection", {})["connect_delay_seconds"] = float(connect_delay)

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("HELMETLINK_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
