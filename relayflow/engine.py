"""Workflow execution engine for relayflow."""

from __future__ import annotations

import copy
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .budget import BudgetGovernor, CostEstimator
from .config import RelayflowConfig, load_config
from .contracts import (
    ErrorInfo,
    ExecutionContext,
    RunReport,
    RunRequest,
    RunUsage,
    StepResult,
    StepUsage,
    ValidationReport,
    Workflow,
    WorkflowReport,
    WorkflowStep,
)
from .credentials import CredentialStore
from .errors import (
    ProviderError,
    ProviderNotConfiguredError,
    RelayflowError,
    StepExecutionError,
    StructuralError,
)
from .graph import dependents, resolve_order
from .ledger import RunLedger, RunRecord, generate_run_id, get_ledger
from .providers import ModelProvider, PydanticAIProvider, parse_model
from .templating import interpolate, interpolate_value
from .tools import ToolInvoker, ToolRegistry, parse_tool
from .validation import validate_steps

logger = logging.getLogger(__name__)

DEFAULT_FINAL_OUTPUT_TOKENS = 500


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def estimate_context_reduction(
    steps: Sequence[WorkflowStep], order: Sequence[str], results: Dict[str, StepResult]
) -> str:
    """Heuristic token savings from keeping intermediate outputs in the engine.

    Without the engine every model step's output would pass through the
    caller's context once for itself and once per dependent step; with it,
    only the final output does.
    """
    without_engine = 0
    for step in steps:
        result = results.get(step.name)
        if result is not None and result.usage is not None:
            without_engine += result.usage.completion_tokens * (
                dependents(steps, step.name) + 1
            )
    if without_engine == 0:
        return "N/A (no AI steps)"

    final = results.get(order[-1]) if order else None
    with_engine = (
        final.usage.completion_tokens if final is not None and final.usage else 0
    ) or DEFAULT_FINAL_OUTPUT_TOKENS

    reduction = round((1 - with_engine / without_engine) * 100)
    if reduction > 0:
        saved = without_engine - with_engine
        return f"{reduction}% (saved ~{round(saved / 1000)}k tokens)"
    return "0%"


class WorkflowEngine:
    """Runs workflows and single model calls under a shared budget.

    Every collaborator can be injected; anything omitted is built from
    ``config``. One engine owns one :class:`BudgetGovernor`, so engines created
    separately (e.g. in tests) never share budget state.
    """

    def __init__(
        self,
        config: Optional[RelayflowConfig] = None,
        *,
        governor: Optional[BudgetGovernor] = None,
        estimator: Optional[CostEstimator] = None,
        provider: Optional[ModelProvider] = None,
        tools: Optional[ToolInvoker] = None,
        ledger: Optional[RunLedger] = None,
        credentials: Optional[CredentialStore] = None,
    ) -> None:
        self.config = config or load_config()
        self.credentials = credentials or CredentialStore(self.config.providers)
        self.governor = governor or BudgetGovernor(self.config.budget)
        self.estimator = estimator or CostEstimator(
            expected_output_tokens=self.config.engine.expected_output_tokens
        )
        self.provider = provider or PydanticAIProvider(self.credentials)
        self.tools = tools if tools is not None else ToolRegistry()
        self.ledger = ledger if ledger is not None else get_ledger(self.config)

    @property
    def strict_templates(self) -> bool:
        return self.config.engine.strict_templates

    def trace_url(self, run_id: str) -> str:
        return f"{self.config.engine.trace_url_base}/{run_id}"

    # ------------------------------------------------------------------
    # Validation
    def validate(self, steps: Sequence[WorkflowStep]) -> ValidationReport:
        """Check ``steps`` without invoking anything or touching the budget."""
        return validate_steps(steps, self.estimator)

    # ------------------------------------------------------------------
    # Workflow execution
    def _admit(self, workflow: Workflow) -> List[str]:
        """Run every pre-execution check and return the execution order.

        Raises a structural or admission error before any cost is incurred.
        """
        order = resolve_order(workflow.steps)
        report = self.validate(workflow.steps)
        if report.errors:
            raise StructuralError(report.errors)

        by_name = {step.name: step for step in workflow.steps}
        model_steps = [by_name[name] for name in order if by_name[name].is_model_step]
        estimated = self.estimator.estimate_workflow(model_steps)
        self.governor.check_budget(estimated).raise_for_denial()

        for step in model_steps:
            if not self.credentials.is_configured(step.provider):
                raise ProviderNotConfiguredError(step.provider, step.name)
        return order

    async def _invoke_model_step(
        self, step: WorkflowStep, context: ExecutionContext
    ) -> Tuple[Any, StepUsage]:
        strict = self.strict_templates
        prompt = interpolate(step.prompt, context, strict)
        system_prompt = (
            interpolate(step.system_prompt, context, strict) if step.system_prompt else None
        )
        logger.debug(f"Step {step.name} prompt: {prompt!r}")

        provider, model_id = parse_model(step.model)
        result = await self.provider.invoke(
            provider, model_id, prompt, system_prompt, step.output_schema
        )
        cost = self.estimator.actual(step.model, result.input_tokens, result.output_tokens)
        self.governor.record_cost(cost)
        return result.output, StepUsage(
            prompt_tokens=result.input_tokens,
            completion_tokens=result.output_tokens,
            cost_usd=cost,
        )

    async def _invoke_tool_step(self, step: WorkflowStep, context: ExecutionContext) -> Any:
        server, tool = parse_tool(step.mcp)
        params = interpolate_value(step.params, context, self.strict_templates)
        return await self.tools.invoke(server, tool, params)

    async def _run_step(
        self, step: WorkflowStep, context: ExecutionContext
    ) -> StepResult:
        """Execute one step and fold its output into ``context``.

        Raises:
            StepExecutionError: Carrying the failed step's result.
        """
        start = time.perf_counter()
        usage: Optional[StepUsage] = None
        try:
            if step.is_model_step:
                output, usage = await self._invoke_model_step(step, context)
            elif step.is_tool_step:
                output = await self._invoke_tool_step(step, context)
            else:
                output = None
        except Exception as e:
            code = e.code if isinstance(e, RelayflowError) else StepExecutionError.code
            failed = StepResult(
                success=False,
                duration_ms=_elapsed_ms(start),
                error=ErrorInfo(code=code, message=str(e), step=step.name),
            )
            raise StepExecutionError(step.name, e, result=failed) from e

        context.record(step.name, output)
        return StepResult(
            success=True, output=output, duration_ms=_elapsed_ms(start), usage=usage
        )

    async def execute(self, workflow: Workflow) -> WorkflowReport:
        """Execute ``workflow`` and return its report.

        Steps run one at a time in resolved order. The first failing step
        aborts the run; steps completed before it keep their results. Errors
        are reported on the returned report, never raised.
        """
        run_id = generate_run_id()
        started_at = _utc_now()
        start = time.perf_counter()
        results: Dict[str, StepResult] = {}
        usage = RunUsage()
        order: List[str] = []
        error: Optional[ErrorInfo] = None
        final_output: Any = None

        logger.info(f"Starting workflow {workflow.name} run_id={run_id}")
        try:
            order = self._admit(workflow)
            by_name = {step.name: step for step in workflow.steps}
            context = ExecutionContext(input=copy.deepcopy(workflow.input))
            for name in order:
                try:
                    result = await self._run_step(by_name[name], context)
                except StepExecutionError as e:
                    results[name] = e.result
                    raise
                results[name] = result
                if result.usage is not None:
                    usage.add(result.usage)
                logger.info(f"Step {name} completed for run_id={run_id}")
            final_output = results[order[-1]].output if order else None
        except RelayflowError as e:
            logger.error(f"Workflow {workflow.name} failed for run_id={run_id}: {e}")
            error = ErrorInfo(code=e.code, message=e.message, step=e.step)

        success = error is None
        context_reduction = (
            estimate_context_reduction(workflow.steps, order, results)
            if success
            else "N/A (workflow failed)"
        )
        report = WorkflowReport(
            run_id=run_id,
            name=workflow.name,
            success=success,
            steps=results,
            execution_order=order,
            final_output=final_output,
            total_usage=usage,
            duration_ms=_elapsed_ms(start),
            trace_url=self.trace_url(run_id),
            context_reduction=context_reduction,
            error=error,
        )
        await self.ledger.append(
            RunRecord(
                run_id=run_id,
                kind="workflow",
                name=workflow.name,
                success=success,
                started_at=started_at,
                ended_at=_utc_now(),
                duration_ms=report.duration_ms,
                usage=usage,
                input=workflow.input,
                output=final_output,
                steps=results,
                error=error.message if error else None,
                failed_step=error.step if error else None,
                context_reduction=context_reduction if success else None,
                trace_url=report.trace_url,
            )
        )
        if success:
            logger.info(
                f"Workflow {workflow.name} completed for run_id={run_id} "
                f"(cost ${usage.cost_usd:.4f}, {usage.total_tokens} tokens)"
            )
        return report

    # ------------------------------------------------------------------
    # Single calls
    async def run_single(self, request: RunRequest) -> RunReport:
        """Execute one model call under the same budget as workflows."""
        run_id = generate_run_id()
        started_at = _utc_now()
        start = time.perf_counter()
        usage = RunUsage()
        output: Any = None
        error: Optional[ErrorInfo] = None

        try:
            provider, model_id = parse_model(request.model)
            if not self.credentials.is_configured(provider):
                raise ProviderNotConfiguredError(provider)
            estimated = self.estimator.estimate(
                request.model, request.prompt, request.system_prompt
            )
            self.governor.check_budget(estimated).raise_for_denial()

            try:
                result = await self.provider.invoke(
                    provider,
                    model_id,
                    request.prompt,
                    request.system_prompt,
                    request.output_schema,
                )
            except RelayflowError:
                raise
            except Exception as e:
                raise ProviderError(str(e)) from e

            cost = self.estimator.actual(
                request.model, result.input_tokens, result.output_tokens
            )
            self.governor.record_cost(cost)
            output = result.output
            usage.add(
                StepUsage(
                    prompt_tokens=result.input_tokens,
                    completion_tokens=result.output_tokens,
                    cost_usd=cost,
                )
            )
        except RelayflowError as e:
            logger.error(f"Run {run_id} with {request.model} failed: {e}")
            error = ErrorInfo(code=e.code, message=e.message)

        report = RunReport(
            success=error is None,
            model=request.model,
            output=output,
            usage=usage,
            duration_ms=_elapsed_ms(start),
            run_id=run_id,
            trace_url=self.trace_url(run_id),
            error=error,
        )
        await self.ledger.append(
            RunRecord(
                run_id=run_id,
                kind="single",
                model=request.model,
                success=report.success,
                started_at=started_at,
                ended_at=_utc_now(),
                duration_ms=report.duration_ms,
                usage=usage,
                input={"prompt": request.prompt, "system_prompt": request.system_prompt},
                output=output,
                error=error.message if error else None,
                trace_url=report.trace_url,
            )
        )
        return report

    # ------------------------------------------------------------------
    # History
    async def get_run(self, run_id: str) -> RunRecord:
        """Fetch a recorded run; raises ``RunNotFoundError`` if it is unknown."""
        return await self.ledger.get(run_id)

    async def recent_runs(self, limit: int = 10) -> List[RunRecord]:
        return await self.ledger.recent(limit)
