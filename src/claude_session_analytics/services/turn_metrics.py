"""Derive per-turn metrics and the chart series built from them."""

import logging
from datetime import datetime

from claude_session_analytics.services.code_changes import code_metrics_from_changes
from claude_session_analytics.types import TimeSeriesPoint, TokenMetrics, Turn, TurnMetrics
from claude_session_analytics.utils.pricing import (
    DEFAULT_MODEL,
    calculate_context_usage,
    calculate_cost,
)

logger = logging.getLogger(__name__)


def token_metrics_from_usage(turn: Turn) -> TokenMetrics:
    usage = turn.usage
    return TokenMetrics(
        input=usage.input_tokens,
        output=usage.output_tokens,
        cache_creation=usage.cache_creation_input_tokens,
        cache_read=usage.cache_read_input_tokens,
        total=usage.total,
    )


def calculate_turn_metrics(turn: Turn, default_model: str = DEFAULT_MODEL) -> TurnMetrics:
    """Compute tokens, cost, context usage, tool and code metrics for one turn.

    Unrecognized turn models are priced as default_model.
    """
    tool_breakdown: dict[str, int] = {}
    for tool in turn.tool_uses:
        tool_breakdown[tool.name] = tool_breakdown.get(tool.name, 0) + 1

    metrics = TurnMetrics(
        turn_id=turn.id,
        turn_number=turn.turn_number,
        timestamp=turn.started_at,
        tokens=token_metrics_from_usage(turn),
        cost=calculate_cost(turn.usage, turn.model, default_model),
        duration_ms=turn.duration_ms,
        context_usage_percent=calculate_context_usage(
            turn.usage.input_tokens,
            turn.model,
            turn.usage.cache_read_input_tokens,
            default_model,
        ),
        tool_count=len(turn.tool_uses),
        tool_breakdown=tool_breakdown,
        code_metrics=code_metrics_from_changes(turn.code_changes),
    )
    logger.debug(
        "Turn %s: %d tokens, $%.6f, %.2f%% context",
        turn.id, metrics.tokens.total, metrics.cost.total, metrics.context_usage_percent,
    )
    return metrics


def metrics_in_time_range(
    turn_metrics: list[TurnMetrics],
    start: datetime,
    end: datetime,
) -> list[TurnMetrics]:
    """Turn metrics stamped within [start, end], in their original order."""
    return [m for m in turn_metrics if start <= m.timestamp <= end]


def time_series_data(turn_metrics: list[TurnMetrics]) -> list[TimeSeriesPoint]:
    """Per-turn token, cost and context-usage points for charting."""
    return [
        TimeSeriesPoint(
            timestamp=m.timestamp,
            tokens=m.tokens.total,
            cost=m.cost.total,
            context_usage_percent=m.context_usage_percent,
        )
        for m in turn_metrics
    ]
