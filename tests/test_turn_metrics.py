"""Tests for claude_session_analytics.services.turn_metrics."""

from datetime import timedelta

import pytest

from helpers import BASE_TIME, make_change, make_tool, make_turn

from claude_session_analytics.services.turn_metrics import (
    calculate_turn_metrics,
    metrics_in_time_range,
    time_series_data,
)
from claude_session_analytics.types import ChangeType


def test_basic_turn():
    turn = make_turn(
        "t1", input_tokens=20_000, output_tokens=1000, cache_read=20_000,
        tools=[make_tool("Read"), make_tool("Read"), make_tool("Edit")],
        changes=[make_change("a.py", ChangeType.MODIFY, added=4, removed=1)],
    )
    metrics = calculate_turn_metrics(turn)

    assert metrics.turn_id == "t1"
    assert metrics.timestamp == turn.started_at
    assert metrics.tokens.total == 41_000
    assert metrics.tool_count == 3
    assert metrics.tool_breakdown == {"Read": 2, "Edit": 1}
    assert metrics.context_usage_percent == 20.0
    assert metrics.code_metrics.net_lines_changed == 3
    assert metrics.duration_ms == turn.duration_ms


def test_unknown_model_priced_with_default():
    turn = make_turn(model="not-a-claude-model", input_tokens=1_000_000, output_tokens=0)
    assert calculate_turn_metrics(turn).cost.total == pytest.approx(3.0)
    haiku = calculate_turn_metrics(turn, default_model="claude-haiku-4-5")
    assert haiku.cost.total == pytest.approx(1.0)


def test_known_model_ignores_default():
    turn = make_turn(model="claude-opus-4-6", input_tokens=1_000_000, output_tokens=0)
    metrics = calculate_turn_metrics(turn, default_model="claude-haiku-4-5")
    assert metrics.cost.total == pytest.approx(5.0)


# ---------------------------------------------------------------------------
# Time range and chart series
# ---------------------------------------------------------------------------

def _series():
    return [calculate_turn_metrics(make_turn(f"t{i}", index=i)) for i in range(5)]


def test_time_range_is_inclusive_at_both_ends():
    metrics = _series()
    start, end = metrics[1].timestamp, metrics[3].timestamp

    selected = metrics_in_time_range(metrics, start, end)

    assert [m.turn_id for m in selected] == ["t1", "t2", "t3"]


def test_time_range_outside_data_is_empty():
    metrics = _series()
    later = BASE_TIME + timedelta(hours=2)
    assert metrics_in_time_range(metrics, later, later + timedelta(hours=1)) == []


def test_time_range_single_instant():
    metrics = _series()
    stamp = metrics[2].timestamp
    assert [m.turn_id for m in metrics_in_time_range(metrics, stamp, stamp)] == ["t2"]


def test_time_series_points():
    turn = make_turn("t1", input_tokens=40_000, output_tokens=1000)
    metrics = calculate_turn_metrics(turn)

    points = time_series_data([metrics])

    assert len(points) == 1
    point = points[0]
    assert point.timestamp == turn.started_at
    assert point.tokens == 41_000
    assert point.cost == metrics.cost.total
    assert point.context_usage_percent == 20.0


def test_time_series_empty():
    assert time_series_data([]) == []
