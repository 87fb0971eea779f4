"""Dependency resolution for workflow steps.

Both workflow execution and validation go through this module, so what the
validator accepts is exactly what the engine will run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .contracts import WorkflowStep
from .errors import CycleError

logger = logging.getLogger(__name__)

_UNVISITED, _VISITING, _DONE = 0, 1, 2


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a step list.

    ``order`` is empty whenever ``cycle_step`` is set.
    """

    order: List[str] = field(default_factory=list)
    cycle_step: Optional[str] = None

    @property
    def has_cycle(self) -> bool:
        return self.cycle_step is not None


def _index(steps: Sequence[WorkflowStep]) -> Dict[str, WorkflowStep]:
    # First declaration wins; duplicates are reported by validation.
    by_name: Dict[str, WorkflowStep] = {}
    for step in steps:
        by_name.setdefault(step.name, step)
    return by_name


def resolve(steps: Sequence[WorkflowStep]) -> Resolution:
    """Return a deterministic topological order of ``steps``.

    Roots are visited in declaration order and each step's dependencies in the
    order they are declared, so ties always break by list position.
    Dependencies on names outside the list are ignored here.
    """
    by_name = _index(steps)
    state: Dict[str, int] = {name: _UNVISITED for name in by_name}
    order: List[str] = []

    def visit(name: str) -> Optional[str]:
        if state[name] == _DONE:
            return None
        if state[name] == _VISITING:
            return name
        state[name] = _VISITING
        for dep in by_name[name].depends:
            if dep not in by_name:
                continue
            witness = visit(dep)
            if witness is not None:
                return witness
        state[name] = _DONE
        order.append(name)
        return None

    for name in by_name:
        witness = visit(name)
        if witness is not None:
            logger.debug(f"Cycle detected at step {witness}")
            return Resolution(order=[], cycle_step=witness)
    return Resolution(order=order)


def resolve_order(steps: Sequence[WorkflowStep]) -> List[str]:
    """Like :func:`resolve` but raise :class:`CycleError` on a cycle."""
    resolution = resolve(steps)
    if resolution.has_cycle:
        raise CycleError(resolution.cycle_step)
    return resolution.order


def parallel_levels(steps: Sequence[WorkflowStep]) -> List[List[str]]:
    """Group steps by longest-path depth in the dependency graph.

    Steps in the same level have no ordering constraint between them. Each
    level lists its members in declaration order.
    """
    by_name = _index(steps)
    position = {name: i for i, name in enumerate(by_name)}
    levels: Dict[str, int] = {}
    for name in resolve_order(steps):
        deps = [d for d in by_name[name].depends if d in by_name]
        levels[name] = 1 + max(levels[d] for d in deps) if deps else 0

    groups: List[List[str]] = [[] for _ in range(max(levels.values(), default=-1) + 1)]
    for name in sorted(levels, key=position.__getitem__):
        groups[levels[name]].append(name)
    return groups


def sink_steps(steps: Sequence[WorkflowStep]) -> List[str]:
    """Return the steps no other step depends on, in declaration order."""
    by_name = _index(steps)
    depended_on = {dep for step in by_name.values() for dep in step.depends}
    return [name for name in by_name if name not in depended_on]


def dependents(steps: Sequence[WorkflowStep], name: str) -> int:
    """Number of steps that list ``name`` as a direct dependency."""
    return sum(1 for step in steps if name in step.depends)


def ancestors(steps: Sequence[WorkflowStep], name: str) -> set[str]:
    """All transitive dependencies of ``name`` that exist in ``steps``."""
    by_name = _index(steps)
    seen: set[str] = set()
    pending = list(by_name[name].depends) if name in by_name else []
    while pending:
        dep = pending.pop()
        if dep in seen or dep not in by_name:
            continue
        seen.add(dep)
        pending.extend(by_name[dep].depends)
    return seen
