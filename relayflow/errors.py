"""Exception taxonomy for relayflow."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .contracts import StepResult, ValidationIssue


class RelayflowError(Exception):
    """Base class for every error raised by relayflow."""

    code = "RELAYFLOW_ERROR"

    def __init__(self, message: str, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.step = step


# Structural errors -------------------------------------------------------


class StructuralError(RelayflowError):
    """The step list is malformed and cannot be executed."""

    code = "STRUCTURAL_ERROR"

    def __init__(self, issues: List["ValidationIssue"]) -> None:
        self.issues = list(issues)
        summary = "; ".join(f"{i.step}.{i.field}: {i.message}" for i in self.issues)
        first = self.issues[0].step if self.issues else None
        super().__init__(f"Invalid workflow: {summary}", step=first)


class CycleError(RelayflowError):
    """The dependency graph contains a cycle."""

    code = "CYCLE_DETECTED"

    def __init__(self, step: str) -> None:
        super().__init__(
            f"Circular dependency detected involving step: {step}", step=step
        )


class InvalidModelError(RelayflowError):
    code = "INVALID_MODEL"

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(
            f'Invalid model format: "{model}". '
            'Expected "provider:model-id" (e.g., "openai:gpt-4o")'
        )


class TemplateResolutionError(RelayflowError):
    """A placeholder could not be resolved while strict templating is enabled."""

    code = "TEMPLATE_RESOLUTION_ERROR"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Template placeholder '{{{{{path}}}}}' could not be resolved")


# Admission errors --------------------------------------------------------


class AdmissionError(RelayflowError):
    """The run was refused before anything was invoked."""

    code = "ADMISSION_ERROR"


class BudgetExceededError(AdmissionError):
    code = "BUDGET_EXCEEDED"

    def __init__(self, kind: str, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class ProviderNotConfiguredError(AdmissionError):
    code = "PROVIDER_NOT_CONFIGURED"

    def __init__(self, provider: str, step: Optional[str] = None) -> None:
        self.provider = provider
        where = f' (step "{step}")' if step else ""
        super().__init__(
            f'Provider "{provider}"{where} is not configured. '
            f"Set {provider.upper()}_API_KEY environment variable.",
            step=step,
        )


# Execution errors --------------------------------------------------------


class ProviderError(RelayflowError):
    """A model provider call failed."""

    code = "PROVIDER_ERROR"


class ToolError(RelayflowError):
    """An external tool call failed."""

    code = "TOOL_ERROR"


class StepExecutionError(RelayflowError):
    code = "STEP_EXECUTION_ERROR"

    def __init__(
        self, step: str, cause: BaseException, result: Optional["StepResult"] = None
    ) -> None:
        self.cause = cause
        self.result = result
        super().__init__(f'Step "{step}" failed: {cause}', step=step)


# Lookup errors -----------------------------------------------------------


class RunNotFoundError(RelayflowError):
    code = "RUN_NOT_FOUND"

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(
            f'Run with ID "{run_id}" not found. '
            "Run history is kept in memory and clears on restart."
        )
