"""Model pricing, cost calculation and context-window usage."""

from claude_session_analytics.types import BudgetEstimate, CostMetrics, TokenUsage


# Per 1M tokens (as of Feb 2026)
MODEL_COSTS: dict[str, dict[str, float]] = {
    "claude-opus-4-6":   {"input": 5.00,  "output": 25.00, "cache_read": 0.50,  "cache_create": 6.25,   "context_window": 200_000},
    "claude-opus-4-5":   {"input": 5.00,  "output": 25.00, "cache_read": 0.50,  "cache_create": 6.25,   "context_window": 200_000},
    "claude-sonnet-4-5": {"input": 3.00,  "output": 15.00, "cache_read": 0.30,  "cache_create": 3.75,   "context_window": 200_000},
    "claude-haiku-4-5":  {"input": 1.00,  "output": 5.00,  "cache_read": 0.10,  "cache_create": 1.25,   "context_window": 200_000},
    "claude-3-5-sonnet": {"input": 3.00,  "output": 15.00, "cache_read": 0.30,  "cache_create": 3.75,   "context_window": 200_000},
    "claude-3-5-haiku":  {"input": 1.00,  "output": 5.00,  "cache_read": 0.10,  "cache_create": 1.25,   "context_window": 200_000},
    "claude-3-opus":     {"input": 15.00, "output": 75.00, "cache_read": 1.50,  "cache_create": 18.75,  "context_window": 200_000},
    "claude-3-haiku":    {"input": 0.25,  "output": 1.25,  "cache_read": 0.025, "cache_create": 0.3125, "context_window": 200_000},
}

DEFAULT_MODEL = "claude-sonnet-4-5"


def _match_model(model: str) -> dict[str, float] | None:
    """Match a model string to its cost entry by prefix."""
    if not model:
        return None
    for prefix, costs in MODEL_COSTS.items():
        if model.startswith(prefix):
            return costs
    # Try partial matches (e.g., "claude-opus-4-7-20260101" -> "claude-opus-4")
    for prefix, costs in MODEL_COSTS.items():
        base = prefix.rsplit("-", 1)[0]
        if model.startswith(base):
            return costs
    return None


def get_model_costs(model: str, default_model: str = DEFAULT_MODEL) -> dict[str, float]:
    """Return the cost entry for a model, falling back to the default model."""
    return (
        _match_model(model)
        or _match_model(default_model)
        or MODEL_COSTS[DEFAULT_MODEL]
    )


def _round_cost(value: float) -> float:
    return round(value, 6)


def calculate_cost(usage: TokenUsage, model: str, default_model: str = DEFAULT_MODEL) -> CostMetrics:
    """Calculate the per-component cost in USD for a turn's token usage."""
    costs = get_model_costs(model, default_model)
    input_cost = usage.input_tokens * costs["input"] / 1_000_000
    output_cost = usage.output_tokens * costs["output"] / 1_000_000
    cache_create_cost = usage.cache_creation_input_tokens * costs["cache_create"] / 1_000_000
    cache_read_cost = usage.cache_read_input_tokens * costs["cache_read"] / 1_000_000
    return CostMetrics(
        input=_round_cost(input_cost),
        output=_round_cost(output_cost),
        cache_creation=_round_cost(cache_create_cost),
        cache_read=_round_cost(cache_read_cost),
        total=_round_cost(input_cost + output_cost + cache_create_cost + cache_read_cost),
    )


def aggregate_cost_metrics(costs: list[CostMetrics]) -> CostMetrics:
    """Sum many per-turn costs component by component."""
    return CostMetrics(
        input=_round_cost(sum(c.input for c in costs)),
        output=_round_cost(sum(c.output for c in costs)),
        cache_creation=_round_cost(sum(c.cache_creation for c in costs)),
        cache_read=_round_cost(sum(c.cache_read for c in costs)),
        total=_round_cost(sum(c.total for c in costs)),
    )


def hourly_cost_rate(total_cost: float, duration_ms: int) -> float:
    if duration_ms <= 0:
        return 0.0
    hours = duration_ms / (1000 * 60 * 60)
    return total_cost / hours


def estimate_remaining_budget(current_cost: float, budget: float) -> BudgetEstimate:
    """How much of a spending budget is left.

    A non-positive budget counts as fully used once anything has been spent.
    """
    if budget > 0:
        percent_used = min(100.0, current_cost / budget * 100)
    else:
        percent_used = 100.0 if current_cost > 0 else 0.0
    return BudgetEstimate(
        remaining=max(0.0, budget - current_cost),
        percent_used=percent_used,
        is_over_budget=current_cost > budget,
    )


def calculate_context_usage(
    input_tokens: int,
    model: str,
    cache_read_tokens: int = 0,
    default_model: str = DEFAULT_MODEL,
) -> float:
    """Percentage of the model's context window occupied by a turn's prompt.

    Cache reads still occupy the window, so they count alongside fresh input.
    """
    window = get_model_costs(model, default_model)["context_window"]
    percentage = (input_tokens + cache_read_tokens) / window * 100
    return min(100.0, max(0.0, round(percentage, 2)))
