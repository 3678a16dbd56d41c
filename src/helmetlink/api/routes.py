"""
API routes.

Endpoints (all JSON):
- GET    `/api/view`: current view model snapshot.
- POST   `/api/connection/{connect,toggle,disconnect}`: helmet link operations.
- POST   `/api/search`: resolve a destination; waits briefly for the outcome.
- DELETE `/api/destination`: clear the destination.
- POST   `/api/playback/toggle`: play/pause the mini player.
- POST   `/api/playback/next`: advance the simulated playlist.
- POST   `/api/location`: push a fix into the simulated location stream.

Request handlers run on server threads, so every operation is submitted to the
session's update queue and awaited instead of touching components directly.
"""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import lru_cache
from typing import Any, Callable

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from helmetlink.config.settings import get_settings
from helmetlink.providers.simulated import SimulatedLocationProvider, SimulatedMediaSession
from helmetlink.session import HelmetSession, build_simulated_session

router = APIRouter()


class SearchRequest(BaseModel):
    query: str = Field(..., max_length=512)


class LocationRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


@lru_cache
def get_session() -> HelmetSession:
    """Process-wide session (cached); tests monkeypatch this factory."""
    return build_simulated_session(get_settings())


def _call(fn: Callable[..., Any], *args: Any) -> Any:
    timeout = get_settings().api.call_timeout_seconds
    try:
        return get_session().queue.submit(fn, *args).result(timeout=timeout)
    except FutureTimeoutError as exc:
        raise HTTPException(
            status_code=503, detail={"code": "QUEUE_TIMEOUT", "message": "Update queue is not responding."}
        ) from exc


def _view() -> dict[str, Any]:
    session = get_session()
    return _call(lambda: session.view).model_dump(mode="json")


@router.get("/api/view")
def get_view() -> dict:
    return _view()


@router.post("/api/connection/connect")
def connect() -> dict:
    started = _call(get_session().connection.connect)
    return {"started": bool(started), "view": _view()}


@router.post("/api/connection/toggle")
def toggle_connection() -> dict:
    _call(get_session().connection.toggle)
    return {"view": _view()}


@router.post("/api/connection/disconnect")
def disconnect() -> dict:
    _call(get_session().connection.disconnect)
    return {"view": _view()}


@router.post("/api/search")
def search(req: SearchRequest) -> dict:
    session = get_session()
    ticket = _call(session.resolver.search, req.query)
    if ticket is None:
        return {"status": "ignored", "view": _view()}

    wait_seconds = get_settings().api.search_wait_seconds
    try:
        outcome = ticket.result(timeout=wait_seconds)
    except FutureTimeoutError:
        return {"status": "pending", "request_id": ticket.request_id, "view": _view()}
    return {"status": outcome.status, "outcome": outcome.model_dump(mode="json"), "view": _view()}


@router.delete("/api/destination")
def clear_destination() -> dict:
    _call(get_session().resolver.clear)
    return {"view": _view()}


@router.post("/api/playback/toggle")
def toggle_playback() -> dict:
    _call(get_session().now_playing.toggle_playback)
    return {"view": _view()}


@router.post("/api/location")
def push_location(req: LocationRequest) -> dict:
    provider = get_session().location_provider
    if not isinstance(provider, SimulatedLocationProvider):
        raise HTTPException(
            status_code=409,
            detail={"code": "NOT_SIMULATED", "message": "Location is supplied by the platform."},
        )
    delivered = provider.push(req.lat, req.lon)
    return {"delivered": delivered, "view": _view()}


@router.post("/api/playback/next")
def next_track() -> dict:
    provider = get_session().media_provider
    if not isinstance(provider, SimulatedMediaSession):
        raise HTTPException(
            status_code=409,
            detail={"code": "NOT_SIMULATED", "message": "Playback is controlled by the platform."},
        )
    provider.skip()
    return {"view": _view()}
