"""Dependency resolution tests."""

import pytest

from relayflow.contracts import WorkflowStep
from relayflow.errors import CycleError
from relayflow.graph import parallel_levels, resolve, resolve_order, sink_steps


def _steps(*specs):
    return [WorkflowStep(name=name, depends=list(deps)) for name, deps in specs]


def test_resolve_orders_dependencies_first():
    steps = _steps(("summary", ["draft"]), ("draft", ["research"]), ("research", []))

    resolution = resolve(steps)

    assert not resolution.has_cycle
    assert resolution.order == ["research", "draft", "summary"]


def test_resolve_breaks_ties_by_declaration_order():
    steps = _steps(("c", []), ("a", []), ("b", []), ("join", ["b", "a"]))

    assert resolve(steps).order == ["c", "a", "b", "join"]


def test_resolve_is_deterministic_across_calls():
    steps = _steps(
        ("security", []),
        ("performance", []),
        ("style", []),
        ("summary", ["security", "performance", "style"]),
        ("notify", ["summary"]),
    )

    orders = {tuple(resolve(steps).order) for _ in range(20)}

    assert len(orders) == 1


def test_every_dependency_precedes_its_dependents():
    steps = _steps(
        ("e", ["d", "b"]), ("d", ["c"]), ("c", ["a"]), ("b", ["a"]), ("a", [])
    )

    order = resolve(steps).order

    assert sorted(order) == ["a", "b", "c", "d", "e"]
    for step in steps:
        for dep in step.depends:
            assert order.index(dep) < order.index(step.name)


def test_cycle_reports_witness_and_no_partial_order():
    steps = _steps(("ok", []), ("a", ["b"]), ("b", ["a"]))

    resolution = resolve(steps)

    assert resolution.has_cycle
    assert resolution.cycle_step == "a"
    assert resolution.order == []


def test_self_dependency_is_a_cycle():
    resolution = resolve(_steps(("c", ["c"])))

    assert resolution.cycle_step == "c"


def test_resolve_order_raises_cycle_error():
    with pytest.raises(CycleError) as exc_info:
        resolve_order(_steps(("x", ["y"]), ("y", ["z"]), ("z", ["x"])))

    assert exc_info.value.step == "x"
    assert exc_info.value.code == "CYCLE_DETECTED"


def test_unknown_dependencies_are_ignored_by_resolver():
    assert resolve(_steps(("a", ["ghost"]), ("b", ["a"]))).order == ["a", "b"]


def test_parallel_levels_use_longest_path():
    steps = _steps(
        ("fetch", []),
        ("lookup", []),
        ("analyze", ["fetch"]),
        ("report", ["analyze", "lookup"]),
    )

    assert parallel_levels(steps) == [["fetch", "lookup"], ["analyze"], ["report"]]


def test_parallel_levels_empty():
    assert parallel_levels([]) == []


def test_parallel_levels_rejects_cycles():
    with pytest.raises(CycleError):
        parallel_levels(_steps(("a", ["b"]), ("b", ["a"])))


def test_sink_steps():
    steps = _steps(("a", []), ("b", ["a"]), ("side", ["a"]))

    assert sink_steps(steps) == ["b", "side"]
