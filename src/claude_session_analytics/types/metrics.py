"""Per-turn and per-session metric types."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TokenMetrics:
    input: int = 0
    output: int = 0
    cache_creation: int = 0
    cache_read: int = 0
    total: int = 0


@dataclass
class CostMetrics:
    """Cost in USD, one field per pricing component."""
    input: float = 0.0
    output: float = 0.0
    cache_creation: float = 0.0
    cache_read: float = 0.0
    total: float = 0.0


@dataclass
class CostBreakdown:
    input: float = 0.0
    output: float = 0.0
    cache_creation: float = 0.0
    cache_read: float = 0.0


@dataclass
class CodeMetrics:
    files_created: int = 0
    files_modified: int = 0
    files_deleted: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    net_lines_changed: int = 0


@dataclass
class TurnMetrics:
    turn_id: str
    timestamp: datetime
    turn_number: int = 0
    tokens: TokenMetrics = field(default_factory=TokenMetrics)
    cost: CostMetrics = field(default_factory=CostMetrics)
    duration_ms: int = 0
    context_usage_percent: float = 0.0
    tool_count: int = 0
    tool_breakdown: dict[str, int] = field(default_factory=dict)
    code_metrics: CodeMetrics = field(default_factory=CodeMetrics)


@dataclass
class MetricAverages:
    tokens_per_turn: float = 0.0
    cost_per_turn: float = 0.0
    duration_ms_per_turn: float = 0.0
    context_usage_percent: float = 0.0


@dataclass
class MetricPeaks:
    max_tokens_in_turn: int = 0
    max_cost_in_turn: float = 0.0
    max_duration_ms: int = 0
    max_context_usage_percent: float = 0.0


@dataclass
class SessionMetrics:
    """Aggregate for one session, always reproducible from its turns."""
    session_id: str
    total_turns: int = 0
    total_duration_ms: int = 0
    total_tokens: TokenMetrics = field(default_factory=TokenMetrics)
    total_cost: float = 0.0
    cost_breakdown: CostBreakdown = field(default_factory=CostBreakdown)
    averages: MetricAverages = field(default_factory=MetricAverages)
    peaks: MetricPeaks = field(default_factory=MetricPeaks)
    total_code_changes: CodeMetrics = field(default_factory=CodeMetrics)
    total_tool_uses: int = 0
    tool_breakdown: dict[str, int] = field(default_factory=dict)
    efficiency_score: float = 0.0
    cache_hit_rate: float = 0.0  # 0-100


@dataclass
class EfficiencyComponents:
    cache_utilization: float = 0.0
    code_output_ratio: float = 0.0   # lines changed per 1000 tokens
    tool_success_rate: float = 100.0
    context_efficiency: float = 50.0
    composite_score: float = 0.0


@dataclass
class BudgetEstimate:
    remaining: float = 0.0
    percent_used: float = 0.0  # capped at 100
    is_over_budget: bool = False


@dataclass
class TimeSeriesPoint:
    """One chart sample per turn."""
    timestamp: datetime
    tokens: int = 0
    cost: float = 0.0
    context_usage_percent: float = 0.0
