"""Tests for claude_session_analytics.services.event_bus."""

import pytest

from claude_session_analytics.services.event_bus import EventBus, StoreEvent


# ---------------------------------------------------------------------------
# 1. Delivery order
# ---------------------------------------------------------------------------

def test_listeners_called_in_registration_order(bus):
    """Listeners for one event run in the order they were added."""
    calls = []
    bus.on(StoreEvent.SESSION_CREATED, lambda p: calls.append(("first", p["n"])))
    bus.on(StoreEvent.SESSION_CREATED, lambda p: calls.append(("second", p["n"])))

    delivered = bus.emit(StoreEvent.SESSION_CREATED, {"n": 1})

    assert delivered == 2
    assert calls == [("first", 1), ("second", 1)]


def test_string_event_names_accepted(bus):
    calls = []
    bus.on("metrics:updated", calls.append)
    bus.emit(StoreEvent.METRICS_UPDATED, {"session_id": "s1"})
    assert calls == [{"session_id": "s1"}]


def test_events_are_isolated(bus):
    calls = []
    bus.on(StoreEvent.TURN_CREATED, calls.append)
    bus.emit(StoreEvent.TURN_UPDATED, {})
    assert calls == []


# ---------------------------------------------------------------------------
# 2. Unsubscribe
# ---------------------------------------------------------------------------

def test_off_removes_listener(bus):
    calls = []
    handle = bus.on(StoreEvent.SESSION_UPDATED, calls.append)

    assert bus.off(StoreEvent.SESSION_UPDATED, handle) is True
    bus.emit(StoreEvent.SESSION_UPDATED, {})

    assert calls == []


def test_off_unknown_listener_returns_false(bus):
    assert bus.off(StoreEvent.SESSION_UPDATED, lambda p: None) is False


def test_once_fires_a_single_time(bus):
    calls = []
    bus.once(StoreEvent.TURN_COMPLETED, calls.append)

    bus.emit(StoreEvent.TURN_COMPLETED, {"n": 1})
    bus.emit(StoreEvent.TURN_COMPLETED, {"n": 2})

    assert calls == [{"n": 1}]
    assert bus.listener_count(StoreEvent.TURN_COMPLETED) == 0


def test_once_listener_removed_by_original_callable(bus):
    """off() accepts the listener passed to once(), not only the returned handle."""
    calls = []

    def listener(payload):
        calls.append(payload)

    bus.once(StoreEvent.TURN_COMPLETED, listener)

    assert bus.off(StoreEvent.TURN_COMPLETED, listener) is True
    bus.emit(StoreEvent.TURN_COMPLETED, {"n": 1})

    assert calls == []
    assert bus.listener_count(StoreEvent.TURN_COMPLETED) == 0


def test_bound_method_listener_can_be_removed(bus):
    class Recorder:
        def __init__(self):
            self.calls = []

        def record(self, payload):
            self.calls.append(payload)

    recorder = Recorder()
    bus.on(StoreEvent.SESSION_UPDATED, recorder.record)
    bus.once(StoreEvent.SESSION_CREATED, recorder.record)

    assert bus.off(StoreEvent.SESSION_UPDATED, recorder.record) is True
    assert bus.off(StoreEvent.SESSION_CREATED, recorder.record) is True
    bus.emit(StoreEvent.SESSION_UPDATED, {})
    bus.emit(StoreEvent.SESSION_CREATED, {})

    assert recorder.calls == []


def test_unsubscribe_during_emit_does_not_skip_others(bus):
    """A listener removing itself mid-delivery doesn't affect this emission."""
    calls = []

    def self_removing(payload):
        calls.append("self")
        bus.off(StoreEvent.SESSION_DELETED, self_removing)

    bus.on(StoreEvent.SESSION_DELETED, self_removing)
    bus.on(StoreEvent.SESSION_DELETED, lambda p: calls.append("other"))

    bus.emit(StoreEvent.SESSION_DELETED, {})
    bus.emit(StoreEvent.SESSION_DELETED, {})

    assert calls == ["self", "other", "other"]


# ---------------------------------------------------------------------------
# 3. Closed vocabulary
# ---------------------------------------------------------------------------

def test_unknown_event_name_rejected(bus):
    with pytest.raises(ValueError):
        bus.on("session:renamed", lambda p: None)
    with pytest.raises(ValueError):
        bus.emit("turn:exploded", {})


def test_vocabulary_is_complete():
    assert {e.value for e in StoreEvent} == {
        "session:created",
        "session:updated",
        "session:deleted",
        "turn:created",
        "turn:updated",
        "turn:completed",
        "metrics:updated",
    }


# ---------------------------------------------------------------------------
# 4. Failure semantics
# ---------------------------------------------------------------------------

def test_listener_exception_propagates(bus):
    """A failing listener aborts delivery and surfaces to the emitter."""
    calls = []

    def boom(payload):
        raise RuntimeError("listener failed")

    bus.on(StoreEvent.SESSION_CREATED, boom)
    bus.on(StoreEvent.SESSION_CREATED, calls.append)

    with pytest.raises(RuntimeError, match="listener failed"):
        bus.emit(StoreEvent.SESSION_CREATED, {})
    assert calls == []


# ---------------------------------------------------------------------------
# 5. No replay, counting, clear
# ---------------------------------------------------------------------------

def test_late_subscriber_sees_only_future_events(bus):
    bus.emit(StoreEvent.SESSION_CREATED, {"n": 1})
    calls = []
    bus.on(StoreEvent.SESSION_CREATED, calls.append)
    bus.emit(StoreEvent.SESSION_CREATED, {"n": 2})
    assert calls == [{"n": 2}]


def test_emit_without_listeners_returns_zero():
    assert EventBus().emit(StoreEvent.METRICS_UPDATED, {}) == 0


def test_clear_drops_everything(bus):
    for event in StoreEvent:
        bus.on(event, lambda p: None)
    assert bus.listener_count(StoreEvent.TURN_UPDATED) == 1

    bus.clear()

    assert all(bus.listener_count(event) == 0 for event in StoreEvent)
