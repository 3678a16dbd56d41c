import logging

import pytest

from helmetlink.core.dispatch import UpdateQueue
from helmetlink.core.observable import Observable


def test_posted_callbacks_run_in_order_on_drain(queue):
    seen = []
    queue.post(seen.append, 1)
    queue.post(seen.append, 2)

    assert seen == []
    assert queue.run_pending() == 2
    assert seen == [1, 2]


def test_callbacks_posted_while_draining_run_in_the_same_pass(queue):
    seen = []

    def first():
        seen.append("first")
        queue.post(seen.append, "nested")

    queue.post(first)
    queue.run_pending()

    assert seen == ["first", "nested"]


def test_timer_fires_only_after_its_delay(queue, clock):
    fired = []
    queue.call_later(2.0, fired.append, "tick")

    queue.run_pending()
    assert fired == []
    assert queue.pending_timers == 1
    assert queue.seconds_until_next_timer() == pytest.approx(2.0)

    clock.advance(1.999)
    queue.run_pending()
    assert fired == []

    clock.advance(0.001)
    queue.run_pending()
    assert fired == ["tick"]
    assert queue.pending_timers == 0


def test_cancelled_timer_never_fires(queue, clock):
    fired = []
    handle = queue.call_later(1.0, fired.append, "tick")
    handle.cancel()

    clock.advance(5)
    queue.run_pending()

    assert fired == []
    assert queue.pending_timers == 0
    assert queue.seconds_until_next_timer() is None


def test_failing_callback_is_logged_and_drain_continues(queue, caplog):
    seen = []

    def boom():
        raise RuntimeError("boom")

    queue.post(boom)
    queue.post(seen.append, "after")
    with caplog.at_level(logging.ERROR, logger="helmetlink.core.dispatch"):
        queue.run_pending()

    assert seen == ["after"]
    assert "failed" in caplog.text


def test_submit_returns_result_and_exceptions_through_future(queue):
    ok = queue.submit(lambda a, b: a + b, 2, 3)

    def bad():
        raise ValueError("nope")

    failed = queue.submit(bad)
    queue.run_pending()

    assert ok.result(timeout=0) == 5
    with pytest.raises(ValueError, match="nope"):
        failed.result(timeout=0)


def test_run_forever_drains_until_stopped():
    import threading

    q = UpdateQueue()
    stop = threading.Event()
    pump = threading.Thread(target=q.run_forever, args=(stop,), kwargs={"max_wait_seconds": 0.05})
    pump.start()
    try:
        assert q.submit(lambda: "done").result(timeout=2) == "done"
    finally:
        stop.set()
        q.wake()
        pump.join(timeout=2)
    assert not pump.is_alive()


def test_observable_notifies_only_on_change_and_unsubscribes():
    obs = Observable(0)
    seen = []
    sub = obs.subscribe(seen.append)

    assert obs.publish(1) is True
    assert obs.publish(1) is False
    sub.unsubscribe()
    sub.unsubscribe()
    obs.publish(2)

    assert seen == [1]
    assert obs.value == 2
    assert obs.subscriber_count == 0


def test_observable_replay_and_failing_subscriber_isolated():
    obs = Observable("a")
    seen = []
    obs.subscribe(seen.append, replay=True)

    def bad(_value):
        raise RuntimeError("subscriber bug")

    obs.subscribe(bad)
    obs.subscribe(seen.append)
    obs.publish("b")

    assert seen == ["a", "b", "b"]
