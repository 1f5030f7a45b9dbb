"""
Observable request counters.

Owned by the SparqlClient; every change is broadcast to subscribers so a UI
can show live pending / successful / failed numbers.
"""

from collections import deque
from typing import Callable

from schemascout.core.schemas import FailedRequest, RequestStatsSnapshot

StatsListener = Callable[[RequestStatsSnapshot], None]


class RequestStats:
    """Pending / successful / failed counters with change notification."""

    def __init__(self, history_size: int = 50):
        self.pending = 0
        self.successful = 0
        self.failed = 0
        self.last_failures: deque[FailedRequest] = deque(maxlen=history_size)
        self._listeners: list[StatsListener] = []

    def subscribe(self, listener: StatsListener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every change.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> RequestStatsSnapshot:
        return RequestStatsSnapshot(
            pending=self.pending,
            successful=self.successful,
            failed=self.failed,
        )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def inc_pending(self) -> None:
        self.pending += 1
        self._notify()

    def dec_pending(self) -> None:
        self.pending -= 1
        self._notify()

    def inc_successful(self) -> None:
        self.successful += 1
        self._notify()

    def inc_failed(self, failure: FailedRequest) -> None:
        self.failed += 1
        self.last_failures.appendleft(failure)
        self._notify()

    def reset(self) -> None:
        self.pending = 0
        self.successful = 0
        self.failed = 0
        self.last_failures.clear()
        self._notify()
