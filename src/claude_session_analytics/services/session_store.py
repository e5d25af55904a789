"""In-memory session store with incremental metric aggregation.

The store owns every Session, Turn and TurnMetrics record plus one mutable
SessionMetrics aggregate per session. All aggregate mutation goes through
two paths that must agree:

- the incremental path (upsert_turn), O(1) per call: subtract the replaced
  turn's contribution, add the new one, then refresh derived fields
- the full path (recalculate_session_metrics), O(n): rebuild the aggregate
  from every stored turn and resynchronize the incremental running state

Peaks are the one exception: the incremental path only ever raises them,
so a lowered or removed turn leaves its peak in place until a full
recalculation runs.

Writes for unknown sessions or turns are silent no-ops and reads for
unknown ids return None; producers are expected to create a session with
get_or_create_session before sending its turns.

Naive timestamps are read as UTC. Session timestamps are always stored
timezone-aware.
"""

import logging
import threading
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone

from claude_session_analytics.services.code_changes import code_metrics_from_changes
from claude_session_analytics.services.efficiency import cache_utilization, calculate_efficiency
from claude_session_analytics.services.event_bus import EventBus, StoreEvent
from claude_session_analytics.types import (
    ChangeType,
    EfficiencyComponents,
    MetricAverages,
    Session,
    SessionMetrics,
    Turn,
    TurnMetrics,
)

logger = logging.getLogger(__name__)

# 5 minutes without a new turn marks a session stale
DEFAULT_ACTIVE_TIMEOUT_S = 300.0

# Maintained by the store from its turns and clock, never set by callers
_DERIVED_SESSION_FIELDS = frozenset({"turn_count", "is_active"})
_SESSION_FIELDS = frozenset(f.name for f in fields(Session)) - {"id"} - _DERIVED_SESSION_FIELDS


@dataclass
class _IncrementalState:
    """Running values that keep incremental updates O(1)."""
    total_context_usage: float = 0.0
    successful_tool_uses: int = 0


@dataclass
class _SessionData:
    session: Session
    file_path: str
    metrics: SessionMetrics
    turns: dict[str, Turn] = field(default_factory=dict)
    turn_metrics: dict[str, TurnMetrics] = field(default_factory=dict)
    state: _IncrementalState = field(default_factory=_IncrementalState)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(timestamp: datetime) -> datetime:
    """Treat naive timestamps as UTC so every stored value is comparable."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def _seconds_since(timestamp: datetime) -> float:
    return (_utcnow() - _as_utc(timestamp)).total_seconds()


class SessionStore:
    """Owns session/turn state and keeps per-session metrics current."""

    def __init__(self, bus: EventBus | None = None, active_timeout_s: float = DEFAULT_ACTIVE_TIMEOUT_S):
        self._bus = bus if bus is not None else EventBus()
        self._active_timeout_s = active_timeout_s
        self._sessions: dict[str, _SessionData] = {}
        self._turn_to_session: dict[str, str] = {}
        self._file_to_session: dict[str, str] = {}
        self._current_session_id: str | None = None
        # Re-entrant so listeners can call read methods while an event is delivered
        self._lock = threading.RLock()

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def active_timeout_s(self) -> float:
        return self._active_timeout_s

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def get_or_create_session(self, session_id: str, file_path: str, **initial) -> Session:
        """Return the session, creating it from the initial fields if unseen."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is not None:
                return data.session

            now = _utcnow()
            session = Session(
                id=session_id,
                project_path=initial.get("project_path", ""),
                project_name=initial.get("project_name", "Unknown Project"),
                branch=initial.get("branch"),
                started_at=_as_utc(initial.get("started_at", now)),
                last_activity_at=_as_utc(initial.get("last_activity_at", now)),
                model=initial.get("model", "unknown"),
                turn_count=0,
                is_active=True,
            )
            self._sessions[session_id] = _SessionData(
                session=session,
                file_path=file_path,
                metrics=SessionMetrics(session_id=session_id),
            )
            self._file_to_session[file_path] = session_id
            logger.debug("Created session %s for %s", session_id, file_path)

            self._bus.emit(StoreEvent.SESSION_CREATED, {"session": session})
            return session

    def update_session(self, session_id: str, **updates) -> Session | None:
        """Apply partial field updates and re-evaluate is_active."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return None

            session = data.session
            for key, value in updates.items():
                if key in _DERIVED_SESSION_FIELDS:
                    logger.warning("Ignoring derived session field %r for %s", key, session_id)
                    continue
                if key not in _SESSION_FIELDS:
                    logger.warning("Ignoring unknown session field %r for %s", key, session_id)
                    continue
                if isinstance(value, datetime):
                    value = _as_utc(value)
                setattr(session, key, value)

            session.is_active = self._is_recent(session.last_activity_at)

            self._bus.emit(StoreEvent.SESSION_UPDATED, {"session": session})
            return session

    def get_session(self, session_id: str) -> Session | None:
        with self._lock:
            data = self._sessions.get(session_id)
            return data.session if data else None

    def get_all_sessions(self) -> list[Session]:
        """All sessions, most recently active first."""
        with self._lock:
            sessions = [data.session for data in self._sessions.values()]
        sessions.sort(key=lambda s: s.last_activity_at, reverse=True)
        return sessions

    def get_active_sessions(self) -> list[Session]:
        """Sessions whose last activity falls within the inactivity timeout right now."""
        return [s for s in self.get_all_sessions() if self._is_recent(s.last_activity_at)]

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get_session_id_by_file(self, file_path: str) -> str | None:
        with self._lock:
            return self._file_to_session.get(file_path)

    def delete_session(self, session_id: str) -> bool:
        """Remove a session, its turns and every index entry pointing at them."""
        with self._lock:
            data = self._sessions.pop(session_id, None)
            if data is None:
                return False

            for turn_id in data.turns:
                self._turn_to_session.pop(turn_id, None)
            self._file_to_session.pop(data.file_path, None)

            if self._current_session_id == session_id:
                self._current_session_id = None

            logger.debug("Deleted session %s (%d turns)", session_id, len(data.turns))
            self._bus.emit(StoreEvent.SESSION_DELETED, {"session_id": session_id})
            return True

    def _is_recent(self, last_activity_at: datetime) -> bool:
        return _seconds_since(last_activity_at) < self._active_timeout_s

    # ------------------------------------------------------------------
    # Current session pointer
    # ------------------------------------------------------------------

    def set_current_session(self, session_id: str | None):
        with self._lock:
            self._current_session_id = session_id

    def get_current_session_id(self) -> str | None:
        with self._lock:
            return self._current_session_id

    def get_current_session(self) -> Session | None:
        with self._lock:
            if not self._current_session_id:
                return None
            return self.get_session(self._current_session_id)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def upsert_turn(self, turn: Turn, metrics: TurnMetrics):
        """Insert a turn, or replace it if its id is already stored.

        No-op when the turn's session does not exist yet.
        """
        with self._lock:
            data = self._sessions.get(turn.session_id)
            if data is None:
                logger.debug("Ignoring turn %s for unknown session %s", turn.id, turn.session_id)
                return

            old_turn = data.turns.get(turn.id)
            old_metrics = data.turn_metrics.get(turn.id)
            is_new = old_turn is None

            data.turns[turn.id] = turn
            data.turn_metrics[turn.id] = metrics
            self._turn_to_session[turn.id] = turn.session_id

            session = data.session
            session.turn_count = len(data.turns)
            session.last_activity_at = _as_utc(turn.ended_at)
            # A fresh turn always reactivates its session
            session.is_active = True

            self._update_metrics_incremental(data, turn, metrics, old_turn, old_metrics)

            event = StoreEvent.TURN_CREATED if is_new else StoreEvent.TURN_UPDATED
            self._bus.emit(event, {"turn": turn, "metrics": metrics})
            self._bus.emit(StoreEvent.SESSION_UPDATED, {"session": session})

    def complete_turn(self, turn_id: str):
        """Signal that a turn is no longer in flight. Event only, no state change."""
        with self._lock:
            data = self._data_for_turn(turn_id)
            if data is None:
                return
            turn = data.turns.get(turn_id)
            metrics = data.turn_metrics.get(turn_id)
            if turn is None or metrics is None:
                return
            self._bus.emit(StoreEvent.TURN_COMPLETED, {"turn": turn, "metrics": metrics})

    def delete_turn(self, turn_id: str) -> bool:
        """Remove one turn and rebuild its session's metrics from the remaining turns."""
        with self._lock:
            data = self._data_for_turn(turn_id)
            if data is None or turn_id not in data.turns:
                return False

            del data.turns[turn_id]
            data.turn_metrics.pop(turn_id, None)
            self._turn_to_session.pop(turn_id, None)
            data.session.turn_count = len(data.turns)

            self.recalculate_session_metrics(data.session.id)
            self._bus.emit(StoreEvent.SESSION_UPDATED, {"session": data.session})
            return True

    def get_turn(self, turn_id: str) -> Turn | None:
        with self._lock:
            data = self._data_for_turn(turn_id)
            return data.turns.get(turn_id) if data else None

    def get_turn_metrics(self, turn_id: str) -> TurnMetrics | None:
        with self._lock:
            data = self._data_for_turn(turn_id)
            return data.turn_metrics.get(turn_id) if data else None

    def get_session_turns(self, session_id: str) -> list[Turn]:
        """Turns of a session ordered by start time."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return []
            return sorted(data.turns.values(), key=lambda t: _as_utc(t.started_at))

    def get_session_turn_metrics(self, session_id: str) -> list[TurnMetrics]:
        """Turn metrics of a session ordered by timestamp."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return []
            return sorted(data.turn_metrics.values(), key=lambda m: _as_utc(m.timestamp))

    def _data_for_turn(self, turn_id: str) -> _SessionData | None:
        session_id = self._turn_to_session.get(turn_id)
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def get_session_metrics(self, session_id: str) -> SessionMetrics | None:
        with self._lock:
            data = self._sessions.get(session_id)
            return data.metrics if data else None

    def get_efficiency_components(self, session_id: str) -> EfficiencyComponents | None:
        """Sub-scores behind a session's efficiency score."""
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return None
            metrics = data.metrics
            return calculate_efficiency(
                metrics.total_tokens,
                metrics.total_code_changes,
                data.state.successful_tool_uses,
                metrics.total_tool_uses,
            )

    def recalculate_session_metrics(self, session_id: str) -> SessionMetrics | None:
        """Rebuild a session's metrics from all of its stored turns.

        Also resynchronizes the incremental running state, so this doubles as
        the corrective path if the incremental aggregate is ever in doubt.
        """
        with self._lock:
            data = self._sessions.get(session_id)
            if data is None:
                return None

            turns = list(data.turns.values())
            turn_metrics = list(data.turn_metrics.values())
            metrics = SessionMetrics(session_id=session_id, total_turns=len(turns))
            state = _IncrementalState()

            tokens = metrics.total_tokens
            for turn in turns:
                tokens.input += turn.usage.input_tokens
                tokens.output += turn.usage.output_tokens
                tokens.cache_creation += turn.usage.cache_creation_input_tokens
                tokens.cache_read += turn.usage.cache_read_input_tokens
                metrics.total_duration_ms += turn.duration_ms
                metrics.total_tool_uses += len(turn.tool_uses)
                for tool in turn.tool_uses:
                    metrics.tool_breakdown[tool.name] = metrics.tool_breakdown.get(tool.name, 0) + 1
                    if not tool.is_error:
                        state.successful_tool_uses += 1

            metrics.total_code_changes = code_metrics_from_changes(
                [change for turn in turns for change in turn.code_changes]
            )

            costs = metrics.cost_breakdown
            peaks = metrics.peaks
            for tm in turn_metrics:
                costs.input += tm.cost.input
                costs.output += tm.cost.output
                costs.cache_creation += tm.cost.cache_creation
                costs.cache_read += tm.cost.cache_read
                metrics.total_cost += tm.cost.total
                state.total_context_usage += tm.context_usage_percent

                peaks.max_tokens_in_turn = max(peaks.max_tokens_in_turn, tm.tokens.total)
                peaks.max_cost_in_turn = max(peaks.max_cost_in_turn, tm.cost.total)
                peaks.max_duration_ms = max(peaks.max_duration_ms, tm.duration_ms)
                peaks.max_context_usage_percent = max(
                    peaks.max_context_usage_percent, tm.context_usage_percent
                )

            _refresh_derived(metrics, state)

            data.metrics = metrics
            data.state = state
            logger.debug("Recalculated metrics for %s from %d turns", session_id, len(turns))

            self._bus.emit(StoreEvent.METRICS_UPDATED, {"session_id": session_id, "metrics": metrics})
            return metrics

    def _update_metrics_incremental(
        self,
        data: _SessionData,
        turn: Turn,
        metrics: TurnMetrics,
        old_turn: Turn | None,
        old_metrics: TurnMetrics | None,
    ):
        session_metrics = data.metrics
        state = data.state

        if old_turn is not None and old_metrics is not None:
            _apply_turn(session_metrics, state, old_turn, old_metrics, -1)
        _apply_turn(session_metrics, state, turn, metrics, 1)

        session_metrics.total_turns = len(data.turns)

        # Peaks only move up here; lowering them needs a full recalculation
        peaks = session_metrics.peaks
        peaks.max_tokens_in_turn = max(peaks.max_tokens_in_turn, metrics.tokens.total)
        peaks.max_cost_in_turn = max(peaks.max_cost_in_turn, metrics.cost.total)
        peaks.max_duration_ms = max(peaks.max_duration_ms, metrics.duration_ms)
        peaks.max_context_usage_percent = max(
            peaks.max_context_usage_percent, metrics.context_usage_percent
        )

        _refresh_derived(session_metrics, state)

        self._bus.emit(
            StoreEvent.METRICS_UPDATED,
            {"session_id": data.session.id, "metrics": session_metrics},
        )

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def clear(self):
        """Wipe all sessions, turns, indexes and the current-session pointer."""
        with self._lock:
            self._sessions.clear()
            self._turn_to_session.clear()
            self._file_to_session.clear()
            self._current_session_id = None


def _apply_turn(
    metrics: SessionMetrics,
    state: _IncrementalState,
    turn: Turn,
    turn_metrics: TurnMetrics,
    sign: int,
):
    """Add (sign=1) or subtract (sign=-1) one turn's contribution to running totals."""
    usage = turn.usage
    tokens = metrics.total_tokens
    tokens.input += sign * usage.input_tokens
    tokens.output += sign * usage.output_tokens
    tokens.cache_creation += sign * usage.cache_creation_input_tokens
    tokens.cache_read += sign * usage.cache_read_input_tokens

    cost = turn_metrics.cost
    costs = metrics.cost_breakdown
    costs.input += sign * cost.input
    costs.output += sign * cost.output
    costs.cache_creation += sign * cost.cache_creation
    costs.cache_read += sign * cost.cache_read
    metrics.total_cost += sign * cost.total

    metrics.total_duration_ms += sign * turn.duration_ms
    state.total_context_usage += sign * turn_metrics.context_usage_percent

    metrics.total_tool_uses += sign * len(turn.tool_uses)
    for tool in turn.tool_uses:
        count = metrics.tool_breakdown.get(tool.name, 0) + sign
        if count > 0:
            metrics.tool_breakdown[tool.name] = count
        else:
            metrics.tool_breakdown.pop(tool.name, None)
        if not tool.is_error:
            state.successful_tool_uses += sign

    code = metrics.total_code_changes
    for change in turn.code_changes:
        if change.type == ChangeType.CREATE:
            code.files_created += sign
        elif change.type == ChangeType.MODIFY:
            code.files_modified += sign
        elif change.type == ChangeType.DELETE:
            code.files_deleted += sign
        code.lines_added += sign * change.lines_added
        code.lines_removed += sign * change.lines_removed


def _refresh_derived(metrics: SessionMetrics, state: _IncrementalState):
    """Recompute every field derived from the running totals."""
    tokens = metrics.total_tokens
    tokens.total = tokens.input + tokens.output + tokens.cache_creation + tokens.cache_read

    code = metrics.total_code_changes
    code.net_lines_changed = code.lines_added - code.lines_removed

    num_turns = metrics.total_turns
    if num_turns == 0:
        metrics.averages = MetricAverages()
        metrics.cache_hit_rate = 0.0
        metrics.efficiency_score = 0.0
        return

    averages = metrics.averages
    averages.tokens_per_turn = tokens.total / num_turns
    averages.cost_per_turn = metrics.total_cost / num_turns
    averages.duration_ms_per_turn = metrics.total_duration_ms / num_turns
    averages.context_usage_percent = state.total_context_usage / num_turns
    metrics.cache_hit_rate = cache_utilization(tokens)
    metrics.efficiency_score = calculate_efficiency(
        tokens, code, state.successful_tool_uses, metrics.total_tool_uses
    ).composite_score
