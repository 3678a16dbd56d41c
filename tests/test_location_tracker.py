from helmetlink.location.tracker import LocationTracker


def test_each_sample_overwrites_the_fix(queue, location):
    tracker = LocationTracker(location, queue)
    assert tracker.start() is True
    assert tracker.current is None

    location.emit(28.6, 77.2)
    location.emit(28.7, 77.3)
    queue.run_pending()

    assert tracker.current.latitude == 28.7
    assert tracker.current.longitude == 77.3
    assert tracker.current.timestamp.tzinfo is not None


def test_permission_denied_leaves_fix_absent(queue, location):
    location.granted = False
    tracker = LocationTracker(location, queue)

    assert tracker.start() is False
    assert tracker.permission_denied is True
    assert location.callback is None
    assert tracker.current is None


def test_teardown_stops_stream_and_drops_queued_samples(queue, location):
    with LocationTracker(location, queue) as tracker:
        location.emit(1.0, 2.0)
        queue.run_pending()
        location.emit(3.0, 4.0)

    queue.run_pending()
    assert location.callback is None
    assert tracker.active is False
    assert (tracker.current.latitude, tracker.current.longitude) == (1.0, 2.0)
