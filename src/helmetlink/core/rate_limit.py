"""
Simple in-process request spacing.

Public geocoders (Nominatim in particular) ask clients to keep a minimum gap between
requests. Lookups run on a small worker pool, so the spacer is lock-protected.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class RequestSpacer:
    """Blocks callers so consecutive `wait()` returns are at least `min_interval_seconds` apart."""

    min_interval_seconds: float
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _last: float | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if float(self.min_interval_seconds) < 0:
            raise ValueError("min_interval_seconds must be >= 0")

    def wait(self) -> float:
        """Sleep until the next request may go out; return the seconds slept."""
        spacing = float(self.min_interval_seconds)
        with self._lock:
            now = time.monotonic()
            slept = 0.0
            if spacing > 0 and self._last is not None:
                remaining = spacing - (now - self._last)
                if remaining > 0:
                    time.sleep(remaining)
                    slept = remaining
                    now = time.monotonic()
            self._last = now
            return slept
