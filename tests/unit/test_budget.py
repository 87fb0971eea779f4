"""Budget governor and cost estimator tests."""

import pytest

from relayflow.budget import BudgetGovernor, CostEstimator, estimate_tokens
from relayflow.config import BudgetConfig
from relayflow.contracts import WorkflowStep
from relayflow.errors import BudgetExceededError


def _governor(clock, **limits):
    return BudgetGovernor(BudgetConfig(**limits), clock=clock)


def test_allows_within_all_ceilings(clock):
    decision = _governor(clock).check_budget(0.10)

    assert decision.allowed
    assert decision.reason is None
    assert decision.kind is None


def test_recorded_spend_is_sum_of_actual_costs(clock):
    governor = _governor(clock)
    costs = [0.012, 0.3, 0.0005, 1.25]

    for cost in costs:
        governor.record_cost(cost)

    state = governor.snapshot()
    assert state.daily_spend_usd == pytest.approx(sum(costs))
    assert state.hourly_call_count == len(costs)


def test_denies_exactly_when_daily_ceiling_would_be_exceeded(clock):
    governor = _governor(clock, max_daily_cost_usd=1.0, max_single_call_cost_usd=1.0)
    governor.record_cost(0.75)

    assert governor.check_budget(0.25).allowed
    denied = governor.check_budget(0.26)
    assert not denied.allowed
    assert denied.kind == "daily_spend"
    assert "$0.75 / $1.0" in denied.reason


def test_denies_per_call_cost(clock):
    decision = _governor(clock, max_single_call_cost_usd=0.5).check_budget(0.51)

    assert decision.kind == "per_call"
    assert "smaller model" in decision.reason


def test_denies_when_hourly_call_limit_reached(clock):
    governor = _governor(clock, max_calls_per_hour=2)
    governor.record_cost(0.0)
    governor.record_cost(0.0)

    decision = governor.check_budget(0.0)

    assert decision.kind == "hourly_rate"
    assert "validation" in decision.reason


def test_hourly_check_wins_over_other_denials(clock):
    governor = _governor(
        clock, max_calls_per_hour=1, max_daily_cost_usd=0.1, max_single_call_cost_usd=0.1
    )
    governor.record_cost(0.09)

    assert governor.check_budget(5.0).kind == "hourly_rate"


def test_daily_check_wins_over_per_call(clock):
    governor = _governor(clock, max_daily_cost_usd=1.0, max_single_call_cost_usd=0.5)

    assert governor.check_budget(2.0).kind == "daily_spend"


def test_raise_for_denial(clock):
    decision = _governor(clock, max_single_call_cost_usd=0.01).check_budget(0.02)

    with pytest.raises(BudgetExceededError) as exc_info:
        decision.raise_for_denial()

    assert exc_info.value.kind == "per_call"
    assert exc_info.value.code == "BUDGET_EXCEEDED"


def test_hourly_window_resets_once_after_an_hour(clock):
    governor = _governor(clock, max_calls_per_hour=1)
    governor.record_cost(0.01)

    clock.advance(minutes=59, seconds=59)
    assert governor.check_budget(0.0).kind == "hourly_rate"

    clock.advance(seconds=1)
    assert governor.check_budget(0.0).allowed
    assert governor.snapshot().hourly_call_count == 0

    # New window starts at the reset, not at the first call.
    governor.record_cost(0.01)
    clock.advance(minutes=30)
    assert governor.check_budget(0.0).kind == "hourly_rate"


def test_daily_window_resets_at_utc_midnight(clock):
    governor = _governor(clock, max_daily_cost_usd=1.0)
    governor.record_cost(0.9)

    clock.advance(hours=14, minutes=29)  # 23:59 UTC
    assert governor.snapshot().daily_spend_usd == pytest.approx(0.9)

    clock.advance(minutes=1)  # 00:00 UTC next day
    assert governor.snapshot().daily_spend_usd == 0.0

    governor.record_cost(0.2)
    clock.advance(hours=1)
    assert governor.snapshot().daily_spend_usd == pytest.approx(0.2)


def test_actual_cost_may_exceed_estimate(clock):
    governor = _governor(clock, max_daily_cost_usd=1.0, max_single_call_cost_usd=1.0)

    assert governor.check_budget(0.1).allowed
    governor.record_cost(1.5)

    assert governor.snapshot().daily_spend_usd == pytest.approx(1.5)
    assert governor.check_budget(0.0).kind == "daily_spend"


def test_governors_do_not_share_state(clock):
    first = _governor(clock)
    second = _governor(clock)

    first.record_cost(3.0)

    assert second.snapshot().daily_spend_usd == 0.0


def test_estimate_tokens_rounds_up():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_estimate_uses_prompt_length_and_expected_output():
    estimator = CostEstimator()

    # 4000 chars -> 1000 input tokens; 500 output tokens by default.
    cost = estimator.estimate("openai:gpt-4o", "x" * 4000)

    assert cost == pytest.approx(0.0025 + 0.5 * 0.01)


def test_estimate_includes_system_prompt():
    estimator = CostEstimator()

    with_system = estimator.estimate("openai:gpt-4o", "x" * 400, system_prompt="y" * 400)
    without = estimator.estimate("openai:gpt-4o", "x" * 400)

    assert with_system > without


def test_actual_cost_from_token_counts():
    cost = CostEstimator().actual("anthropic:claude-3-5-sonnet-20241022", 2000, 1000)

    assert cost == pytest.approx(2 * 0.003 + 1 * 0.015)


def test_unknown_model_uses_default_pricing():
    estimator = CostEstimator()

    assert not estimator.is_known("openai:gpt-9")
    assert estimator.actual("openai:gpt-9", 1000, 1000) == pytest.approx(0.01 + 0.03)


def test_estimate_workflow_sums_model_steps_only():
    estimator = CostEstimator(expected_output_tokens=0)
    steps = [
        WorkflowStep(name="a", model="openai:gpt-4o", prompt="x" * 4000),
        WorkflowStep(name="b", mcp="crm:search"),
        WorkflowStep(name="c"),
        WorkflowStep(name="d", model="openai:gpt-4o", prompt="x" * 4000),
    ]

    assert estimator.estimate_workflow(steps) == pytest.approx(2 * 0.0025)


def test_unknown_model_pricing_fallback_is_logged_as_warning(caplog):
    with caplog.at_level("WARNING", logger="relayflow.budget.estimator"):
        CostEstimator().estimate("openai:gpt-9", "hello")

    assert any(
        r.levelname == "WARNING" and "openai:gpt-9" in r.getMessage() for r in caplog.records
    )
