from helmetlink.config.settings import get_settings
from helmetlink.domain.models import ConnectionStatus, GeocodeCandidate, GeoPoint
from helmetlink.providers.base import NowPlayingItem
from helmetlink.session import HelmetSession

FALLBACK = GeoPoint(lat=28.6139, lon=77.2090)


def _candidate(name, lat, lon):
    return GeocodeCandidate(display_name=name, coordinate=GeoPoint(lat=lat, lon=lon))


def _search(session, executor, query):
    ticket = session.resolver.search(query)
    executor.complete(len(executor.calls) - 1)
    session.queue.run_pending()
    return ticket


def test_initial_view_uses_fallback_center_and_disconnected_texts(session):
    view = session.view

    assert view.connection_status is ConnectionStatus.DISCONNECTED
    assert view.status_text == "Helmet Disconnected"
    assert view.status_color == "red"
    assert view.connect_action_label == "Connect to Helmet"
    assert view.map.center == FALLBACK
    assert (view.map.lat_delta, view.map.lon_delta) == (0.05, 0.05)
    assert view.marker is None
    assert view.distance_label is None
    assert view.user_location is None
    assert view.track.title == "Highway Star"


def test_connection_phases_are_reflected(session, clock):
    session.connection.connect()
    assert session.view.status_text == "Connecting to Helmet…"
    assert session.view.status_color == "orange"

    clock.advance(2.0)
    session.queue.run_pending()
    assert session.view.status_text == "Helmet Connected"
    assert session.view.status_color == "green"
    assert session.view.connect_action_label == "Disconnect Helmet"


def test_destination_recenters_map_and_places_marker(session, geocoder, executor, location):
    geocoder.answers["india gate"] = [_candidate("India Gate, New Delhi", 28.6129, 77.2295)]
    location.emit(28.6139, 77.2090)
    session.queue.run_pending()
    assert session.view.user_location == FALLBACK
    assert session.view.distance_label is None

    _search(session, executor, "india gate")
    view = session.view

    assert view.map.center == GeoPoint(lat=28.6129, lon=77.2295)
    assert view.marker.title == "India Gate, New Delhi"
    assert view.marker.tint == "red"
    assert view.marker.id == session.resolver.destination.id
    assert view.distance_label.endswith(" km")
    assert view.last_search.status == "ok"


def test_user_movement_does_not_move_the_map(session, geocoder, executor, location):
    geocoder.answers["red fort"] = [_candidate("Red Fort", 28.6562, 77.2410)]
    _search(session, executor, "red fort")
    location.emit(28.60, 77.20)
    session.queue.run_pending()
    location.emit(28.61, 77.21)
    session.queue.run_pending()

    assert session.view.map.center == GeoPoint(lat=28.6562, lon=77.2410)
    assert session.view.user_location == GeoPoint(lat=28.61, lon=77.21)


def test_center_survives_clear_and_disconnect(session, geocoder, executor):
    geocoder.answers["red fort"] = [_candidate("Red Fort", 28.6562, 77.2410)]
    _search(session, executor, "red fort")
    session.connection.toggle()
    session.connection.toggle()
    session.resolver.clear()

    view = session.view
    assert view.marker is None
    assert view.distance_label is None
    assert view.map.center == GeoPoint(lat=28.6562, lon=77.2410)


def test_failed_search_is_surfaced_without_moving_the_map(session, geocoder, executor):
    _search(session, executor, "atlantis")

    assert session.view.last_search.status == "no_candidates"
    assert session.view.map.center == FALLBACK


def test_track_changes_flow_into_the_view(session, media):
    media.change(NowPlayingItem(title="Born to Be Wild", artist="Steppenwolf"))
    session.queue.run_pending()

    assert session.view.track.title == "Born to Be Wild"
    assert session.view.track.artist == "Steppenwolf"


def test_permission_denied_is_visible(queue, executor, media, location, geocoder):
    location.granted = False
    with HelmetSession(
        get_settings(), media=media, location=location, geocoder=geocoder, queue=queue, executor=executor
    ) as session:
        assert session.view.location_permission_denied is True
        assert session.view.user_location is None


def test_closed_session_stops_republishing(session, media):
    session.close()
    media.change(NowPlayingItem(title="Late", artist="Arrival"))
    session.queue.run_pending()

    assert session.view.track.title == "Highway Star"
    assert session.view.connection_status is ConnectionStatus.DISCONNECTED


def test_one_view_published_per_successful_search(session, geocoder, executor):
    geocoder.answers["india gate"] = [_candidate("India Gate, New Delhi", 28.6129, 77.2295)]
    seen = []
    session.viewport.view.subscribe(seen.append)

    _search(session, executor, "india gate")

    assert [(v.marker.title, v.last_search.status) for v in seen] == [("India Gate, New Delhi", "ok")]


def test_late_search_result_after_close_leaves_view_alone(session, geocoder, executor):
    geocoder.answers["red fort"] = [_candidate("Red Fort", 28.6562, 77.2410)]
    session.resolver.search("red fort")
    session.close()

    executor.complete(0)
    session.queue.run_pending()

    assert session.resolver.destination is None
    assert session.view.marker is None
