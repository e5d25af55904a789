"""Type definitions for Claude Session Analytics."""

from claude_session_analytics.types.sessions import (
    ChangeType,
    CodeChange,
    Session,
    TokenUsage,
    ToolUse,
    Turn,
)
from claude_session_analytics.types.metrics import (
    BudgetEstimate,
    CodeMetrics,
    CostBreakdown,
    CostMetrics,
    EfficiencyComponents,
    MetricAverages,
    MetricPeaks,
    SessionMetrics,
    TimeSeriesPoint,
    TokenMetrics,
    TurnMetrics,
)

__all__ = [
    "ChangeType",
    "CodeChange",
    "Session",
    "TokenUsage",
    "ToolUse",
    "Turn",
    "BudgetEstimate",
    "CodeMetrics",
    "CostBreakdown",
    "CostMetrics",
    "EfficiencyComponents",
    "MetricAverages",
    "MetricPeaks",
    "SessionMetrics",
    "TimeSeriesPoint",
    "TokenMetrics",
    "TurnMetrics",
]
