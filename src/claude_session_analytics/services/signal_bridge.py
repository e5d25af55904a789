"""Re-emit store bus events as Qt signals for the UI layer."""

import logging

from PySide6.QtCore import QObject, Signal

from claude_session_analytics.services.event_bus import EventBus, StoreEvent

logger = logging.getLogger(__name__)


class StoreSignalBridge(QObject):
    """Subscribes to an EventBus and forwards each event as a typed Qt signal.

    Signals are emitted synchronously from the bus listener, so slots
    connected in the same thread run before the store mutation returns.
    """

    session_created = Signal(object)  # Session
    session_updated = Signal(object)  # Session
    session_deleted = Signal(str)  # session_id
    turn_created = Signal(object, object)  # Turn, TurnMetrics
    turn_updated = Signal(object, object)  # Turn, TurnMetrics
    turn_completed = Signal(object, object)  # Turn, TurnMetrics
    metrics_updated = Signal(str, object)  # session_id, SessionMetrics

    def __init__(self, bus: EventBus, parent=None):
        super().__init__(parent)
        self._bus = bus
        self._handlers = {
            StoreEvent.SESSION_CREATED: lambda p: self.session_created.emit(p["session"]),
            StoreEvent.SESSION_UPDATED: lambda p: self.session_updated.emit(p["session"]),
            StoreEvent.SESSION_DELETED: lambda p: self.session_deleted.emit(p["session_id"]),
            StoreEvent.TURN_CREATED: lambda p: self.turn_created.emit(p["turn"], p["metrics"]),
            StoreEvent.TURN_UPDATED: lambda p: self.turn_updated.emit(p["turn"], p["metrics"]),
            StoreEvent.TURN_COMPLETED: lambda p: self.turn_completed.emit(p["turn"], p["metrics"]),
            StoreEvent.METRICS_UPDATED: lambda p: self.metrics_updated.emit(p["session_id"], p["metrics"]),
        }
        for event, handler in self._handlers.items():
            bus.on(event, handler)
        self._attached = True

    @property
    def attached(self) -> bool:
        return self._attached

    def detach(self):
        """Stop forwarding bus events."""
        if not self._attached:
            return
        for event, handler in self._handlers.items():
            self._bus.off(event, handler)
        self._attached = False
        logger.debug("Signal bridge detached from event bus")
