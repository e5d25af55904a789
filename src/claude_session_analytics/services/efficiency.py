"""Composite efficiency score for a session.

The score is a weighted blend (0-100) of four sub-scores:

- cache utilization (30%): share of cache-eligible tokens served from cache
- code output ratio (25%): lines changed per 1000 tokens, normalized
- tool success rate (25%): non-error tool uses over all tool uses
- context efficiency (20%): output tokens relative to input tokens

Every ratio resolves to a fixed neutral value when its denominator is zero,
so the score is always finite.
"""

from claude_session_analytics.types import CodeMetrics, EfficiencyComponents, TokenMetrics

WEIGHTS = {
    "cache_utilization": 0.30,
    "code_output_ratio": 0.25,
    "tool_success_rate": 0.25,
    "context_efficiency": 0.20,
}

# Lines changed per 1000 tokens considered "excellent"
EXCELLENT_CODE_RATIO = 50.0
# Output/input token ratio considered "excellent"
EXCELLENT_CONTEXT_RATIO = 0.5

NEUTRAL_CONTEXT_EFFICIENCY = 50.0

# (threshold, grade, description), highest first
_GRADES = (
    (90, "A", "Excellent"),
    (80, "B", "Good"),
    (70, "C", "Fair"),
    (60, "D", "Needs Improvement"),
)


def _round2(value: float) -> float:
    return round(value, 2)


def cache_utilization(tokens: TokenMetrics) -> float:
    """cache_read / (cache_creation + cache_read) * 100, clamped to [0, 100]."""
    cache_total = tokens.cache_creation + tokens.cache_read
    if cache_total <= 0:
        return 0.0
    rate = tokens.cache_read / cache_total * 100
    return min(100.0, max(0.0, _round2(rate)))


def code_output_ratio(tokens: TokenMetrics, code: CodeMetrics) -> float:
    """Lines changed per 1000 tokens."""
    if tokens.total <= 0:
        return 0.0
    lines_changed = abs(code.lines_added) + abs(code.lines_removed)
    return _round2(lines_changed / tokens.total * 1000)


def tool_success_rate(successful_tools: int, total_tools: int) -> float:
    """No tool uses means no failures, which counts as full success."""
    if total_tools <= 0:
        return 100.0
    return _round2(successful_tools / total_tools * 100)


def context_efficiency(tokens: TokenMetrics) -> float:
    if tokens.input <= 0:
        return NEUTRAL_CONTEXT_EFFICIENCY
    normalized = tokens.output / tokens.input * 100 / EXCELLENT_CONTEXT_RATIO
    return min(100.0, _round2(normalized))


def normalize_code_ratio(ratio: float) -> float:
    return min(ratio / EXCELLENT_CODE_RATIO * 100, 100.0)


def composite_score(
    cache_util: float,
    code_ratio: float,
    tool_success: float,
    context_eff: float,
) -> float:
    score = (
        cache_util * WEIGHTS["cache_utilization"]
        + normalize_code_ratio(code_ratio) * WEIGHTS["code_output_ratio"]
        + tool_success * WEIGHTS["tool_success_rate"]
        + context_eff * WEIGHTS["context_efficiency"]
    )
    return _round2(score)


def calculate_efficiency(
    tokens: TokenMetrics,
    code: CodeMetrics,
    successful_tools: int,
    total_tools: int,
) -> EfficiencyComponents:
    """Compute the four sub-scores and the weighted composite."""
    cache_util = cache_utilization(tokens)
    code_ratio = code_output_ratio(tokens, code)
    tool_success = tool_success_rate(successful_tools, total_tools)
    context_eff = context_efficiency(tokens)
    return EfficiencyComponents(
        cache_utilization=cache_util,
        code_output_ratio=code_ratio,
        tool_success_rate=tool_success,
        context_efficiency=context_eff,
        composite_score=composite_score(cache_util, code_ratio, tool_success, context_eff),
    )


def efficiency_grade(score: float) -> str:
    for threshold, grade, _ in _GRADES:
        if score >= threshold:
            return grade
    return "F"


def efficiency_description(score: float) -> str:
    for threshold, _, description in _GRADES:
        if score >= threshold:
            return description
    return "Poor"


def efficiency_recommendations(components: EfficiencyComponents) -> list[str]:
    """Advisory text derived from threshold checks on each sub-score."""
    recommendations: list[str] = []

    if components.cache_utilization < 50:
        recommendations.append(
            "Consider structuring prompts to maximize cache reuse. "
            "Use consistent system prompts and context."
        )

    if components.code_output_ratio < 10:
        recommendations.append(
            "Code output is low relative to token usage. "
            "Consider more focused, task-specific prompts."
        )

    if components.tool_success_rate < 80:
        recommendations.append(
            "Tool error rate is high. Review failed tool uses to identify common issues."
        )
    elif components.tool_success_rate < 95:
        recommendations.append(
            "Some tool errors detected. Consider improving error handling "
            "or providing clearer tool inputs."
        )

    if components.context_efficiency < 30:
        recommendations.append(
            "Context usage is inefficient. Try reducing verbose system prompts "
            "or context window bloat."
        )

    score = components.composite_score
    if score >= 80:
        recommendations.append("Excellent efficiency! Current session is well-optimized.")
    elif score >= 60:
        recommendations.append("Good efficiency. Minor optimizations could improve token usage.")
    elif score >= 40:
        recommendations.append(
            "Moderate efficiency. Consider reviewing prompts and context management."
        )
    else:
        recommendations.append(
            "Low efficiency detected. Significant optimization opportunities exist."
        )

    return recommendations
