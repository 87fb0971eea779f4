"""Side-effect-free workflow validation.

Checks step shapes, dependency references and graph structure without
invoking any model or tool, touching the budget, or writing run history.
The engine runs the same checks before executing a workflow.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterator, List, Optional, Sequence

from .budget import CostEstimator
from .contracts import (
    ValidationIssue,
    ValidationReport,
    ValidationWarning,
    WorkflowStep,
    WorkflowStructure,
)
from .graph import ancestors, parallel_levels, resolve, sink_steps
from .providers.base import is_valid_model_id
from .templating import ROOTS, template_references


def _template_strings(step: WorkflowStep) -> Iterator[str]:
    for text in (step.prompt, step.system_prompt):
        if text:
            yield text

    def walk(value: Any) -> Iterator[str]:
        if isinstance(value, str):
            yield value
        elif isinstance(value, dict):
            for item in value.values():
                yield from walk(item)
        elif isinstance(value, list):
            for item in value:
                yield from walk(item)

    yield from walk(step.params)


def _check_shape(
    step: WorkflowStep,
    names: set[str],
    estimator: CostEstimator,
    errors: List[ValidationIssue],
    warnings: List[ValidationWarning],
) -> None:
    has_model, has_prompt, has_mcp = bool(step.model), bool(step.prompt), bool(step.mcp)

    if has_model and not has_prompt:
        errors.append(
            ValidationIssue(
                step=step.name, field="prompt", message="Steps with a model must have a prompt"
            )
        )
    if has_prompt and not has_model:
        errors.append(
            ValidationIssue(
                step=step.name, field="model", message="Steps with a prompt must have a model"
            )
        )
    if not has_model and not has_mcp:
        warnings.append(
            ValidationWarning(
                step=step.name,
                message="Step has no model or MCP tool - it will be a pass-through step",
            )
        )

    if has_model:
        if not is_valid_model_id(step.model):
            errors.append(
                ValidationIssue(
                    step=step.name,
                    field="model",
                    message=f'Invalid model format: "{step.model}". '
                    'Expected "provider:model-id" (e.g., "openai:gpt-4o")',
                )
            )
        elif not estimator.is_known(step.model):
            warnings.append(
                ValidationWarning(
                    step=step.name,
                    message=f'Unknown model "{step.model}" - using default pricing estimate',
                )
            )

    if has_model and has_mcp:
        errors.append(
            ValidationIssue(
                step=step.name,
                field="mcp",
                message="Steps must use either a model or an MCP tool, not both",
            )
        )

    if has_mcp:
        parts = step.mcp.split(":")
        if len(parts) != 2 or not all(parts):
            errors.append(
                ValidationIssue(
                    step=step.name,
                    field="mcp",
                    message=f'Invalid MCP tool format: "{step.mcp}". '
                    'Expected "server:tool" (e.g., "crm:search")',
                )
            )

    for dep in step.depends:
        if dep not in names:
            errors.append(
                ValidationIssue(
                    step=step.name,
                    field="depends",
                    message=f'Dependency "{dep}" not found in workflow steps',
                )
            )
        if dep == step.name:
            errors.append(
                ValidationIssue(
                    step=step.name, field="depends", message="Step cannot depend on itself"
                )
            )


def _check_references(
    step: WorkflowStep,
    steps: Sequence[WorkflowStep],
    warnings: List[ValidationWarning],
) -> None:
    upstream: Optional[set[str]] = None
    for text in _template_strings(step):
        for path in template_references(text):
            if path.root not in ROOTS:
                warnings.append(
                    ValidationWarning(
                        step=step.name,
                        message=f'Template "{{{{{path}}}}}" must start with "input" or '
                        '"steps"; it will render as an empty string',
                    )
                )
                continue
            target = path.step_name
            if target is None:
                continue
            if upstream is None:
                upstream = ancestors(steps, step.name)
            if target not in upstream:
                warnings.append(
                    ValidationWarning(
                        step=step.name,
                        message=f'Template references step "{target}" which is not a '
                        "dependency; it will render as an empty string unless it has "
                        "already run",
                    )
                )


def validate_steps(
    steps: Sequence[WorkflowStep], estimator: Optional[CostEstimator] = None
) -> ValidationReport:
    """Validate ``steps`` and describe the resulting execution structure."""
    estimator = estimator or CostEstimator()
    errors: List[ValidationIssue] = []
    warnings: List[ValidationWarning] = []
    names = {step.name for step in steps}

    for name, count in Counter(step.name for step in steps).items():
        if count > 1:
            errors.append(
                ValidationIssue(
                    step=name,
                    field="name",
                    message=f'Duplicate step name: "{name}" appears {count} times',
                )
            )

    for step in steps:
        if not step.name or not step.name.strip():
            errors.append(
                ValidationIssue(step="(unnamed)", field="name", message="Step name is required")
            )
            continue
        _check_shape(step, names, estimator, errors, warnings)
        _check_references(step, steps, warnings)

    resolution = resolve(steps)
    if resolution.has_cycle:
        errors.append(
            ValidationIssue(
                step=resolution.cycle_step,
                field="depends",
                message=f"Circular dependency detected involving step: {resolution.cycle_step}",
            )
        )
        structure = WorkflowStructure(total_steps=len(steps))
    else:
        order = resolution.order
        final_step = order[-1] if order else None
        sinks = sink_steps(steps)
        if len(sinks) > 1:
            warnings.append(
                ValidationWarning(
                    step=final_step,
                    message=f"Workflow has {len(sinks)} steps nothing depends on "
                    f"({', '.join(sinks)}); the final output will come from "
                    f'"{final_step}", the last step in execution order',
                )
            )
        structure = WorkflowStructure(
            total_steps=len(steps),
            execution_order=order,
            parallel_groups=parallel_levels(steps),
            final_step=final_step,
        )

    return ValidationReport(
        valid=not errors, errors=errors, warnings=warnings, structure=structure
    )
