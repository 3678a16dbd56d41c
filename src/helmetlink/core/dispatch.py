"""
Serial update queue.

All mutations of published state (connection status, track mirror, location fix,
destination, view model) run as callbacks drained from one `UpdateQueue`, so the
rendering layer never observes a half-applied update.

- `post()` may be called from any thread (provider callbacks, geocoding workers).
- `call_later()` schedules one-shot timers (the simulated connect delay).
- `run_pending()` drains ready callbacks and due timers on the calling thread; a UI
  host calls it from its own loop, the API runs `run_forever()` on a pump thread.

The clock is injectable so tests can advance time deterministically.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled one-shot callback; `cancel()` before it fires to drop it."""

    def __init__(self, due: float, callback: Callable[..., Any], args: tuple[Any, ...]):
        self.due = due
        self._callback = callback
        self._args = args
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class UpdateQueue:
    """Single-consumer callback queue with timers."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._ready: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._timers: list[tuple[float, int, TimerHandle]] = []
        self._order = itertools.count()
        self._wakeup = threading.Event()

    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue `callback(*args)` to run on the next drain."""
        with self._lock:
            self._ready.append((callback, args))
        self._wakeup.set()

    def submit(self, callback: Callable[..., Any], *args: Any) -> Future:
        """Queue `callback(*args)` and return a future resolved with its result.

        Lets a foreign thread (e.g. an API request handler) run an operation on the
        queue and wait for it.
        """
        future: Future = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(callback(*args))
            except BaseException as exc:
                future.set_exception(exc)

        self.post(run)
        return future

    def call_later(self, delay_seconds: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Schedule `callback(*args)` to run once `delay_seconds` have elapsed."""
        handle = TimerHandle(self._clock() + max(0.0, float(delay_seconds)), callback, args)
        with self._lock:
            heapq.heappush(self._timers, (handle.due, next(self._order), handle))
        self._wakeup.set()
        return handle

    @property
    def pending_timers(self) -> int:
        """Number of scheduled, not-yet-cancelled timers."""
        with self._lock:
            return sum(1 for _, _, handle in self._timers if not handle.cancelled)

    def seconds_until_next_timer(self) -> float | None:
        with self._lock:
            self._drop_cancelled_locked()
            if not self._timers:
                return None
            return max(0.0, self._timers[0][0] - self._clock())

    def _drop_cancelled_locked(self) -> None:
        while self._timers and self._timers[0][2].cancelled:
            heapq.heappop(self._timers)

    def _pop_next(self) -> tuple[Callable[..., Any], tuple[Any, ...]] | None:
        with self._lock:
            if self._ready:
                return self._ready.popleft()
            self._drop_cancelled_locked()
            if self._timers and self._timers[0][0] <= self._clock():
                _, _, handle = heapq.heappop(self._timers)
                return handle._callback, handle._args
            return None

    def run_pending(self) -> int:
        """Run ready callbacks and due timers until none are left; return how many ran.

        Callbacks posted while draining run in the same pass. A failing callback is
        logged and does not stop the drain.
        """
        ran = 0
        while True:
            item = self._pop_next()
            if item is None:
                return ran
            callback, args = item
            try:
                callback(*args)
            except Exception:
                logger.exception("Update callback %r failed", callback)
            ran += 1

    def wake(self) -> None:
        """Interrupt a `run_forever()` wait (used on shutdown)."""
        self._wakeup.set()

    def run_forever(self, stop_event: threading.Event, *, max_wait_seconds: float = 0.25) -> None:
        """Drain the queue until `stop_event` is set; intended for a dedicated pump thread."""
        while not stop_event.is_set():
            self._wakeup.clear()
            self.run_pending()
            until_timer = self.seconds_until_next_timer()
            timeout = max_wait_seconds if until_timer is None else min(max_wait_seconds, until_timer)
            self._wakeup.wait(timeout=timeout)
