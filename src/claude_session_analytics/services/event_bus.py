"""Synchronous publish/subscribe bus for store change notifications."""

import functools
import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any]], None]


class StoreEvent(str, Enum):
    SESSION_CREATED = "session:created"
    SESSION_UPDATED = "session:updated"
    SESSION_DELETED = "session:deleted"
    TURN_CREATED = "turn:created"
    TURN_UPDATED = "turn:updated"
    TURN_COMPLETED = "turn:completed"
    METRICS_UPDATED = "metrics:updated"


class EventBus:
    """Delivers each event to its current listeners, in registration order.

    Delivery happens on the emitting thread before emit() returns. Listener
    exceptions are not caught: they propagate to whoever called emit(), and
    listeners registered after a failing one are not invoked for that event.
    Nothing is retained, so a late subscriber never sees earlier events.
    """

    def __init__(self):
        self._listeners: dict[StoreEvent, list[Listener]] = {event: [] for event in StoreEvent}

    def on(self, event: StoreEvent | str, listener: Listener) -> Listener:
        """Register a listener. Returns it so callers can keep a handle for off()."""
        self._listeners[StoreEvent(event)].append(listener)
        return listener

    def once(self, event: StoreEvent | str, listener: Listener) -> Listener:
        """Register a listener that is removed after its first delivery.

        Either the returned handle or the original listener can be passed to off().
        """
        event = StoreEvent(event)

        @functools.wraps(listener)
        def _wrapper(payload: dict[str, Any]) -> None:
            self.off(event, _wrapper)
            listener(payload)

        return self.on(event, _wrapper)

    def off(self, event: StoreEvent | str, listener: Listener) -> bool:
        """Unregister a listener. Returns False if it was not registered."""
        listeners = self._listeners[StoreEvent(event)]
        for index, registered in enumerate(listeners):
            if registered == listener or getattr(registered, "__wrapped__", None) == listener:
                del listeners[index]
                return True
        return False

    def emit(self, event: StoreEvent | str, payload: dict[str, Any]) -> int:
        """Invoke all listeners for an event. Returns how many were called."""
        event = StoreEvent(event)
        # Snapshot so listeners may subscribe/unsubscribe while being notified
        listeners = list(self._listeners[event])
        for listener in listeners:
            listener(payload)
        return len(listeners)

    def listener_count(self, event: StoreEvent | str) -> int:
        return len(self._listeners[StoreEvent(event)])

    def clear(self):
        """Drop every registered listener."""
        for listeners in self._listeners.values():
            listeners.clear()
