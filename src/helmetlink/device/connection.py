"""
Mocked helmet link.

Two connection policies exist side by side and the caller picks one:
- `connect()`: delayed auto-connect (disconnected -> connecting -> connected after a timer)
- `toggle()`: instant flip between connected and disconnected

There is no transport behind this; the status is what the UI reflects.
"""

from __future__ import annotations

import logging

from helmetlink.core.dispatch import TimerHandle, UpdateQueue
from helmetlink.core.observable import Observable
from helmetlink.domain.models import ConnectionStatus

logger = logging.getLogger(__name__)


class ConnectionState:
    """Connection status state machine; all transitions run on the update queue."""

    def __init__(self, queue: UpdateQueue, *, connect_delay_seconds: float = 2.0):
        self._queue = queue
        self._connect_delay_seconds = float(connect_delay_seconds)
        self._pending_connect: TimerHandle | None = None
        self.status: Observable[ConnectionStatus] = Observable(
            ConnectionStatus.DISCONNECTED, name="connection.status"
        )

    @property
    def current(self) -> ConnectionStatus:
        return self.status.value

    def connect(self) -> bool:
        """Start a delayed connect; returns False (and schedules nothing) unless disconnected."""
        if self.status.value is not ConnectionStatus.DISCONNECTED:
            logger.debug("connect() ignored while %s", self.status.value.value)
            return False
        self._set(ConnectionStatus.CONNECTING)
        self._pending_connect = self._queue.call_later(self._connect_delay_seconds, self._finish_connect)
        return True

    def _finish_connect(self) -> None:
        self._pending_connect = None
        if self.status.value is ConnectionStatus.CONNECTING:
            self._set(ConnectionStatus.CONNECTED)

    def toggle(self) -> ConnectionStatus:
        """Flip immediately: disconnected -> connected, anything else -> disconnected."""
        if self.status.value is ConnectionStatus.DISCONNECTED:
            self._set(ConnectionStatus.CONNECTED)
        else:
            self.disconnect()
        return self.status.value

    def disconnect(self) -> None:
        """Drop the link from any state, abandoning a connect in progress."""
        self._cancel_pending()
        self._set(ConnectionStatus.DISCONNECTED)

    def _cancel_pending(self) -> None:
        if self._pending_connect is not None:
            self._pending_connect.cancel()
            self._pending_connect = None

    def _set(self, status: ConnectionStatus) -> None:
        previous = self.status.value
        if self.status.publish(status):
            logger.info("Helmet link %s -> %s", previous.value, status.value)
