"""
Destination resolver.

`search(query)` issues one geocoding lookup on a worker pool and commits the
first-ranked candidate as the new `Destination`. The lookup's completion is posted
back onto the update queue, where:

- only the most recently *issued* search may commit; older results are discarded
  (request ids increase monotonically),
- zero candidates leave the previous destination untouched,
- provider failures are reported, not swallowed: every search resolves its
  `SearchTicket` and (unless superseded) publishes a `SearchOutcome`.

Destination, distance and the latest outcome are published together as one
`NavigationState`, so the distance is present exactly when both a fix and a
destination exist, and a subscriber never sees a new destination next to a stale
outcome. The distance is recomputed on every new location fix while a destination
is set. After `close()`, late lookups resolve their tickets as superseded and publish
nothing.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from helmetlink.core.dispatch import UpdateQueue
from helmetlink.core.observable import Observable
from helmetlink.domain.models import (
    Destination,
    DistanceReading,
    GeocodeCandidate,
    LocationFix,
    NavigationState,
    SearchOutcome,
)
from helmetlink.errors import GeocodingError, ProviderUnavailableError
from helmetlink.location.tracker import LocationTracker
from helmetlink.providers.base import GeocodingProvider

logger = logging.getLogger(__name__)


class SearchTicket:
    """Handle for one issued search; resolves with its `SearchOutcome`."""

    def __init__(self, request_id: int, query: str):
        self.request_id = request_id
        self.query = query
        self._future: Future = Future()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> SearchOutcome:
        """Block until the outcome is known (raises `TimeoutError` after `timeout`)."""
        return self._future.result(timeout=timeout)

    def _resolve(self, outcome: SearchOutcome) -> None:
        self._future.set_result(outcome)


class DestinationResolver:
    def __init__(
        self,
        geocoder: GeocodingProvider,
        tracker: LocationTracker,
        queue: UpdateQueue,
        *,
        executor: Executor | None = None,
        max_workers: int = 2,
    ):
        self._geocoder = geocoder
        self._tracker = tracker
        self._queue = queue
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="helmetlink-geocode"
        )
        self._last_issued = 0
        self._closed = False
        self.state: Observable[NavigationState] = Observable(NavigationState(), name="navigation.state")
        self._fix_subscription = tracker.fix.subscribe(self._on_fix)

    @property
    def destination(self) -> Destination | None:
        return self.state.value.destination

    @property
    def distance(self) -> DistanceReading | None:
        return self.state.value.distance

    @property
    def last_outcome(self) -> SearchOutcome | None:
        return self.state.value.last_outcome

    def search(self, query: str) -> SearchTicket | None:
        """Start a lookup for `query`; blank queries are ignored and return None."""
        text = (query or "").strip()
        if self._closed:
            logger.debug("Ignoring destination query after close")
            return None
        if not text:
            logger.debug("Ignoring blank destination query")
            return None

        self._last_issued += 1
        ticket = SearchTicket(self._last_issued, text)
        fix = self._tracker.current
        near = fix.point if fix is not None else None
        logger.info("Destination search #%s for %r", ticket.request_id, text)

        future = self._executor.submit(self._geocoder.search, text, near=near)
        future.add_done_callback(lambda f: self._queue.post(self._complete, ticket, f))
        return ticket

    def clear(self) -> None:
        """Drop the current destination; its distance goes with it."""
        self.state.publish(NavigationState(last_outcome=self.last_outcome))

    def close(self) -> None:
        """Stop following location fixes and release an owned worker pool.

        Lookups still in flight complete as superseded and never publish.
        """
        self._closed = True
        self._fix_subscription.unsubscribe()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _complete(self, ticket: SearchTicket, future: Future) -> None:
        if self._closed or ticket.request_id != self._last_issued:
            logger.debug("Discarding result of search #%s (latest #%s)", ticket.request_id, self._last_issued)
            ticket._resolve(SearchOutcome(request_id=ticket.request_id, query=ticket.query, status="superseded"))
            return

        outcome = self._outcome(ticket, future)
        current = self.state.value
        if outcome.destination is not None:
            state = self._navigation_state(outcome.destination, self._tracker.current, outcome)
            logger.info(
                "Destination set to %r (%.5f, %.5f)",
                outcome.destination.display_name,
                outcome.destination.coordinate.lat,
                outcome.destination.coordinate.lon,
            )
        else:
            state = current.model_copy(update={"last_outcome": outcome})
        self.state.publish(state)
        ticket._resolve(outcome)

    def _outcome(self, ticket: SearchTicket, future: Future) -> SearchOutcome:
        try:
            candidates: list[GeocodeCandidate] = future.result()
        except ProviderUnavailableError as exc:
            logger.warning("Destination search #%s failed: %s", ticket.request_id, exc)
            return SearchOutcome(
                request_id=ticket.request_id,
                query=ticket.query,
                status="provider_unavailable",
                error=str(exc),
                status_code=exc.status_code,
            )
        except GeocodingError as exc:
            logger.warning("Destination search #%s failed: %s", ticket.request_id, exc)
            return SearchOutcome(
                request_id=ticket.request_id, query=ticket.query, status="provider_unavailable", error=str(exc)
            )
        except Exception as exc:
            logger.exception("Destination search #%s failed unexpectedly", ticket.request_id)
            return SearchOutcome(
                request_id=ticket.request_id,
                query=ticket.query,
                status="provider_unavailable",
                error=f"{type(exc).__name__}: {exc}",
            )

        if not candidates:
            logger.info("Destination search #%s found nothing for %r", ticket.request_id, ticket.query)
            return SearchOutcome(request_id=ticket.request_id, query=ticket.query, status="no_candidates")

        best = candidates[0]
        destination = Destination(display_name=best.display_name, coordinate=best.coordinate)
        return SearchOutcome(request_id=ticket.request_id, query=ticket.query, status="ok", destination=destination)

    def _on_fix(self, fix: LocationFix | None) -> None:
        current = self.state.value
        if current.destination is None:
            return
        self.state.publish(self._navigation_state(current.destination, fix, current.last_outcome))

    @staticmethod
    def _navigation_state(
        destination: Destination, fix: LocationFix | None, outcome: SearchOutcome | None
    ) -> NavigationState:
        distance = DistanceReading.between(fix, destination) if fix is not None else None
        return NavigationState(destination=destination, distance=distance, last_outcome=outcome)
