"""
HelmetLink CLI entrypoint.

This CLI is intended for quick local demos and debugging without a phone:
- `geocode`: print the ranked candidates the geocoder returns for a query
- `demo`: run a simulated session (fake media + location), search, print the view model
- `serve`: run the HTTP API with uvicorn
"""

from __future__ import annotations

import argparse
import json
import time
from typing import Any, Callable

from helmetlink.config.settings import get_settings
from helmetlink.core.dispatch import UpdateQueue
from helmetlink.core.logging import configure_logging
from helmetlink.domain.models import GeoPoint, ViewModel
from helmetlink.errors import GeocodingError
from helmetlink.ingestion.geocoding_client import NominatimGeocoder
from helmetlink.session import build_simulated_session


def _pump_until(queue: UpdateQueue, done: Callable[[], bool], *, timeout_seconds: float) -> bool:
    """Drain `queue` on this thread until `done()` holds or the timeout passes."""
    deadline = time.monotonic() + max(0.0, timeout_seconds)
    while True:
        queue.run_pending()
        if done():
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(0.05)


def _print_view(view: ViewModel) -> None:
    print(f"{view.status_text} [{view.status_color}]  (button: {view.connect_action_label})")
    state = "playing" if view.track.is_playing else "paused"
    print(f"Now playing: {view.track.title} - {view.track.artist} ({state})")
    if view.user_location is not None:
        print(f"You are at: {view.user_location.lat:.5f}, {view.user_location.lon:.5f}")
    elif view.location_permission_denied:
        print("You are at: unknown (location permission denied)")
    print(f"Map center: {view.map.center.lat:.5f}, {view.map.center.lon:.5f}")
    if view.marker is not None:
        print(f"Destination: {view.marker.title}")
    if view.distance_label is not None:
        print(f"Distance: {view.distance_label}")
    if view.last_search is not None and view.last_search.status != "ok":
        detail = f": {view.last_search.error}" if view.last_search.error else ""
        print(f"Last search ({view.last_search.query!r}): {view.last_search.status}{detail}")


def _cmd_geocode(args: argparse.Namespace) -> int:
    settings = get_settings()
    geocoder = NominatimGeocoder(settings)
    near = None
    if args.near_lat is not None and args.near_lon is not None:
        near = GeoPoint(lat=args.near_lat, lon=args.near_lon)
    try:
        candidates = geocoder.search(args.query, near=near)
    except GeocodingError as exc:
        print(f"Geocoding failed: {exc}")
        return 2

    if args.json:
        print(json.dumps([c.model_dump(mode="json") for c in candidates], ensure_ascii=False, indent=2))
        return 0 if candidates else 1
    if not candidates:
        print("No matches.")
        return 1
    for i, c in enumerate(candidates, start=1):
        print(f"{i:>2}. {c.display_name}  ({c.coordinate.lat:.5f}, {c.coordinate.lon:.5f})")
    return 0


def _cmd_demo(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.lat is not None and args.lon is not None:
        start = {"lat": args.lat, "lon": args.lon}
        simulation = settings.simulation.model_copy(
            update={"start_location": settings.simulation.start_location.model_copy(update=start)}
        )
        settings = settings.model_copy(update={"simulation": simulation})

    session = build_simulated_session(settings)
    with session:
        session.queue.run_pending()
        if args.play:
            session.now_playing.toggle_playback()
        if args.connect:
            session.connection.connect()

        exit_code = 0
        if args.query:
            ticket = session.resolver.search(args.query)
            if ticket is not None:
                finished = _pump_until(session.queue, ticket.done, timeout_seconds=args.timeout)
                if not finished:
                    print("Search did not finish in time.")
                    exit_code = 1
                elif ticket.result().status != "ok":
                    exit_code = 1

        if args.connect:
            delay = settings.connection.connect_delay_seconds
            _pump_until(session.queue, lambda: session.queue.pending_timers == 0, timeout_seconds=delay + 1.0)

        session.queue.run_pending()
        view = session.view

    if args.json:
        print(json.dumps(view.model_dump(mode="json"), ensure_ascii=False, indent=2))
    else:
        _print_view(view)
    return exit_code


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("helmetlink.api.app:app", host=args.host, port=int(args.port), reload=bool(args.reload))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the HelmetLink CLI."""
    parser = argparse.ArgumentParser(prog="helmetlink")
    parser.add_argument("--log-level", default=None, help="Override the configured log level (e.g. DEBUG).")
    sub = parser.add_subparsers(dest="command", required=True)

    geo = sub.add_parser("geocode", help="Resolve a free-text place query and list the candidates.")
    geo.add_argument("query")
    geo.add_argument("--near-lat", type=float, default=None, help="Bias results towards this latitude.")
    geo.add_argument("--near-lon", type=float, default=None, help="Bias results towards this longitude.")
    geo.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    geo.set_defaults(func=_cmd_geocode)

    demo = sub.add_parser("demo", help="Run a simulated session and print the resulting view model.")
    demo.add_argument("--query", type=str, default=None, help="Destination to search for.")
    demo.add_argument("--lat", type=float, default=None, help="Simulated user latitude.")
    demo.add_argument("--lon", type=float, default=None, help="Simulated user longitude.")
    demo.add_argument("--connect", action="store_true", help="Run the delayed helmet connect.")
    demo.add_argument("--play", action="store_true", help="Start playback on the simulated player.")
    demo.add_argument("--timeout", type=float, default=15.0, help="Seconds to wait for the search.")
    demo.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    demo.set_defaults(func=_cmd_demo)

    serve = sub.add_parser("serve", help="Run the HTTP API (simulated providers).")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint used by the `helmetlink` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
