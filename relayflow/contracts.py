"""Core data contracts for relayflow workflows."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class WorkflowStep(BaseModel):
    """Defines one step in a workflow.

    A step is a model step (``model`` and ``prompt``), a tool step (``mcp``)
    or a pass-through step (neither).
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    model: Optional[str] = Field(
        default=None, description="Model in provider:model format"
    )
    prompt: Optional[str] = Field(
        default=None,
        description="Prompt template (supports {{input.field}} and {{steps.name.output}})",
    )
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    output_schema: Optional[Dict[str, JsonValue]] = Field(
        default=None, alias="schema", description="JSON schema for structured output"
    )
    depends: List[str] = Field(default_factory=list)
    mcp: Optional[str] = Field(default=None, description="Tool in server:tool format")
    params: Dict[str, JsonValue] = Field(default_factory=dict)

    @property
    def is_model_step(self) -> bool:
        return bool(self.model and self.prompt)

    @property
    def is_tool_step(self) -> bool:
        return bool(self.mcp) and not self.is_model_step

    @property
    def provider(self) -> Optional[str]:
        if not self.model:
            return None
        return self.model.split(":", 1)[0]


class Workflow(BaseModel):
    """A named, ordered set of steps plus the input they run against."""

    name: str
    steps: List[WorkflowStep] = Field(default_factory=list)
    input: Dict[str, JsonValue] = Field(default_factory=dict)


class ExecutionContext(BaseModel):
    """Values visible to step templates while a workflow runs.

    ``steps`` only gains an entry once the named step has completed.
    """

    input: Dict[str, Any] = Field(default_factory=dict)
    steps: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def record(self, step_name: str, output: Any) -> None:
        self.steps[step_name] = {"output": output}

    def as_mapping(self) -> Dict[str, Any]:
        return {"input": self.input, "steps": self.steps}


class ErrorInfo(BaseModel):
    code: str
    message: str
    step: Optional[str] = None


class StepUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost_usd: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class RunUsage(BaseModel):
    """Aggregate token usage and provider cost of a run."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0

    def add(self, usage: StepUsage) -> None:
        self.prompt_tokens += usage.prompt_tokens
        self.completion_tokens += usage.completion_tokens
        self.total_tokens += usage.total_tokens
        self.cost_usd += usage.cost_usd


class StepResult(BaseModel):
    """Outcome of a single executed step."""

    success: bool
    output: Any = None
    duration_ms: int = 0
    usage: Optional[StepUsage] = None
    error: Optional[ErrorInfo] = None


class WorkflowReport(BaseModel):
    """Result of executing a workflow.

    ``steps`` only holds entries for steps that ran; on failure the failed
    step is present with its error and every later step is absent.
    """

    run_id: str
    name: str
    success: bool
    steps: Dict[str, StepResult] = Field(default_factory=dict)
    execution_order: List[str] = Field(default_factory=list)
    final_output: Any = None
    total_usage: RunUsage = Field(default_factory=RunUsage)
    duration_ms: int = 0
    trace_url: str
    context_reduction: str = "N/A"
    error: Optional[ErrorInfo] = None


class RunRequest(BaseModel):
    """A single model invocation outside of any workflow."""

    model_config = ConfigDict(populate_by_name=True)

    model: str
    prompt: str
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    output_schema: Optional[Dict[str, JsonValue]] = Field(default=None, alias="schema")


class RunReport(BaseModel):
    success: bool
    model: str
    output: Any = None
    usage: RunUsage = Field(default_factory=RunUsage)
    duration_ms: int = 0
    run_id: str
    trace_url: str
    error: Optional[ErrorInfo] = None


class ValidationIssue(BaseModel):
    """A structural error found while validating a step list."""

    step: str
    field: Literal["name", "model", "prompt", "mcp", "depends"]
    message: str


class ValidationWarning(BaseModel):
    step: str
    message: str


class WorkflowStructure(BaseModel):
    total_steps: int
    execution_order: List[str] = Field(default_factory=list)
    parallel_groups: List[List[str]] = Field(default_factory=list)
    final_step: Optional[str] = None


class ValidationReport(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)
    structure: WorkflowStructure
