"""
Minimal publish/subscribe primitive.

Each component exposes its published state as an `Observable`: a current value plus
change callbacks. Publishing an equal value is a no-op, so subscribers only hear about
real changes. Publishing is expected to happen on the update queue thread.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by `Observable.subscribe`; `unsubscribe()` is idempotent."""

    def __init__(self, release: Callable[[], None]):
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def unsubscribe(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class Observable(Generic[T]):
    """A current value plus callbacks fired when it changes."""

    def __init__(self, initial: T, *, name: str = ""):
        self._value = initial
        self._name = name
        self._callbacks: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: Callable[[T], None], *, replay: bool = False) -> Subscription:
        """Register `callback`; with `replay=True` it is also called with the current value."""
        self._callbacks.append(callback)

        def release() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        if replay:
            callback(self._value)
        return Subscription(release)

    def publish(self, value: T) -> bool:
        """Replace the current value and notify subscribers; returns False if unchanged."""
        if value == self._value:
            return False
        self._value = value
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception:
                logger.exception("Subscriber of %s failed", self._name or "observable")
        return True
