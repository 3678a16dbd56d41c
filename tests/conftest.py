from __future__ import annotations

from concurrent.futures import Future
from typing import Any, Callable

import pytest

from helmetlink.config.settings import get_settings
from helmetlink.core.dispatch import UpdateQueue
from helmetlink.domain.models import GeocodeCandidate, GeoPoint
from helmetlink.providers.base import LocationSample, NowPlayingItem
from helmetlink.session import HelmetSession


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualExecutor:
    """Executor stand-in: lookups only run when the test calls `complete(i)`."""

    def __init__(self):
        self.calls: list[tuple[Callable[..., Any], tuple, dict, Future]] = []

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        self.calls.append((fn, args, kwargs, future))
        return future

    def complete(self, index: int) -> None:
        fn, args, kwargs, future = self.calls[index]
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)

    def shutdown(self, wait: bool = True) -> None:
        pass


class StubGeocoder:
    """Answers from a dict; a value that is an exception gets raised."""

    def __init__(self, answers: dict[str, Any] | None = None):
        self.answers = dict(answers or {})
        self.queries: list[tuple[str, GeoPoint | None]] = []

    def search(self, query: str, *, near: GeoPoint | None = None) -> list[GeocodeCandidate]:
        self.queries.append((query, near))
        answer = self.answers.get(query, [])
        if isinstance(answer, Exception):
            raise answer
        return list(answer)


class StubMediaSession:
    def __init__(self, item: NowPlayingItem | None = None, playing: bool = False):
        self.item = item
        self.playing = playing
        self.listeners: list[Callable[[], None]] = []
        self.notifying = False

    def add_now_playing_listener(self, callback):
        self.listeners.append(callback)

    def remove_now_playing_listener(self, callback):
        self.listeners.remove(callback)

    def begin_notifications(self):
        self.notifying = True

    def end_notifications(self):
        self.notifying = False

    def now_playing_item(self):
        return self.item

    def is_playing(self):
        return self.playing

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False

    def change(self, item: NowPlayingItem | None) -> None:
        """Platform side: swap the item and fire listeners (even if nobody should hear it)."""
        self.item = item
        for listener in list(self.listeners):
            listener()


class StubLocationProvider:
    def __init__(self, granted: bool = True):
        self.granted = granted
        self.callback: Callable[[LocationSample], None] | None = None
        self.permission_requests = 0

    def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.granted

    def start_updates(self, callback):
        self.callback = callback

    def stop_updates(self):
        self.callback = None

    def emit(self, lat: float, lon: float) -> None:
        if self.callback is not None:
            self.callback(LocationSample(lat, lon))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def queue(clock: FakeClock) -> UpdateQueue:
    return UpdateQueue(clock=clock)


@pytest.fixture
def executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def media() -> StubMediaSession:
    return StubMediaSession(NowPlayingItem(title="Highway Star", artist="Deep Purple"))


@pytest.fixture
def location() -> StubLocationProvider:
    return StubLocationProvider()


@pytest.fixture
def geocoder() -> StubGeocoder:
    return StubGeocoder()


@pytest.fixture
def session(queue, executor, media, location, geocoder) -> HelmetSession:
    s = HelmetSession(
        get_settings(),
        media=media,
        location=location,
        geocoder=geocoder,
        queue=queue,
        executor=executor,
    )
    s.start()
    queue.run_pending()
    yield s
    s.close()
