"""
Synchronous publish/subscribe used by the graph stores and services.

Delivery is immediate and in subscription order; late subscribers get no
replay.
"""

from typing import Any, Callable


NODES_CHANGED = "nodes-changed"
PROPERTIES_CHANGED = "properties-changed"
PREFIXES_CHANGED = "prefixes-changed"
EXTRACTION_LOG = "extraction-log"
EXTRACTION_COMPLETE = "extraction-complete"

Listener = Callable[[Any], None]


class EventEmitter:
    """Minimal named-event emitter."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """
        Subscribe to an event.

        Returns:
            Callable that removes the subscription
        """
        self._listeners.setdefault(event, []).append(listener)
        return lambda: self.off(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event)
        if not listeners:
            return
        self._listeners[event] = [l for l in listeners if l is not listener]

    def emit(self, event: str, data: Any = None) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(event, [])):
            listener(data)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))
