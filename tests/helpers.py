"""Shared test helpers."""

from datetime import datetime, timedelta, timezone

from claude_session_analytics.services.turn_metrics import calculate_turn_metrics
from claude_session_analytics.types import (
    ChangeType,
    CodeChange,
    CostMetrics,
    TokenMetrics,
    TokenUsage,
    ToolUse,
    Turn,
    TurnMetrics,
)

BASE_TIME = datetime(2026, 2, 14, 12, 0, 0, tzinfo=timezone.utc)


def make_tool(name: str = "Read", is_error: bool = False, tool_id: str | None = None, **input) -> ToolUse:
    return ToolUse(id=tool_id or f"tool-{name}", name=name, input=input, is_error=is_error)


def make_change(
    path: str = "src/app.py",
    change_type: ChangeType = ChangeType.MODIFY,
    added: int = 0,
    removed: int = 0,
) -> CodeChange:
    return CodeChange(
        file_path=path,
        type=change_type,
        lines_added=added,
        lines_removed=removed,
        extension=path.rsplit(".", 1)[-1] if "." in path else "unknown",
    )


def make_turn(
    turn_id: str = "t1",
    session_id: str = "s1",
    *,
    index: int = 0,
    input_tokens: int = 1000,
    output_tokens: int = 500,
    cache_creation: int = 0,
    cache_read: int = 0,
    duration_ms: int = 2000,
    tools: list[ToolUse] | None = None,
    changes: list[CodeChange] | None = None,
    model: str = "claude-sonnet-4-5-20250929",
    started_at: datetime | None = None,
) -> Turn:
    start = started_at or BASE_TIME + timedelta(minutes=index)
    return Turn(
        id=turn_id,
        session_id=session_id,
        turn_number=index + 1,
        started_at=start,
        ended_at=start + timedelta(milliseconds=duration_ms),
        duration_ms=duration_ms,
        usage=TokenUsage(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_creation_input_tokens=cache_creation,
            cache_read_input_tokens=cache_read,
        ),
        tool_uses=tools or [],
        code_changes=changes or [],
        model=model,
    )


def metrics_for(turn: Turn) -> TurnMetrics:
    return calculate_turn_metrics(turn)


def fixed_cost_metrics(turn: Turn, cost: float, context_usage: float = 0.0) -> TurnMetrics:
    """TurnMetrics with a hand-picked total cost, for exact cost assertions."""
    return TurnMetrics(
        turn_id=turn.id,
        turn_number=turn.turn_number,
        timestamp=turn.started_at,
        tokens=TokenMetrics(
            input=turn.usage.input_tokens,
            output=turn.usage.output_tokens,
            cache_creation=turn.usage.cache_creation_input_tokens,
            cache_read=turn.usage.cache_read_input_tokens,
            total=turn.usage.total,
        ),
        cost=CostMetrics(input=cost, total=cost),
        duration_ms=turn.duration_ms,
        context_usage_percent=context_usage,
        tool_count=len(turn.tool_uses),
    )


def upsert(store, turn: Turn, metrics: TurnMetrics | None = None):
    store.upsert_turn(turn, metrics or metrics_for(turn))
