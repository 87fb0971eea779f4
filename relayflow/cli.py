"""Command line interface for running relayflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from pydantic import BaseModel, ValidationError

from relayflow.catalog import list_models
from relayflow.config import RelayflowConfig, load_config
from relayflow.contracts import RunRequest, Workflow
from relayflow.credentials import CredentialStore
from relayflow.engine import WorkflowEngine
from relayflow.errors import RunNotFoundError
from relayflow.ledger import get_ledger
from relayflow.skills import get_skill, list_skills

app = typer.Typer(help="CLI for relayflow workflows")

# Command groups
workflow_app = typer.Typer(help="Commands for running and validating workflows")
skills_app = typer.Typer(help="Commands for pre-built workflow skills")
models_app = typer.Typer(help="Commands for the model catalog")
runs_app = typer.Typer(
    help=(
        "Commands for inspecting recent runs. History is kept in process memory, "
        "so only runs made by the current process are visible; separate CLI "
        "invocations do not share it."
    )
)

app.add_typer(workflow_app, name="workflow")
app.add_typer(skills_app, name="skills")
app.add_typer(models_app, name="models")
app.add_typer(runs_app, name="runs")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to a relayflow YAML config file"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """relayflow CLI entry point."""
    settings = load_config(str(config) if config else None)
    logging.basicConfig(level=(log_level or settings.log_level).upper())
    ctx.obj = settings


def _settings(ctx: typer.Context) -> RelayflowConfig:
    return ctx.obj if isinstance(ctx.obj, RelayflowConfig) else load_config()


def _echo_model(model: BaseModel) -> None:
    typer.echo(model.model_dump_json(indent=2))


def _parse_input(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        typer.secho(f"Invalid JSON input: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    if not isinstance(data, dict):
        typer.secho("Input must be a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    return data


def _load_workflow(path: Path, input_override: Dict[str, Any]) -> Workflow:
    if not path.exists():
        typer.secho(f"Workflow file not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        typer.secho(f"Invalid workflow file {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    data = {} if data is None else data
    if not isinstance(data, dict):
        typer.secho(
            f"Invalid workflow file {path}: expected a mapping with name, steps and input",
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)
    data.setdefault("name", path.stem)
    if input_override and isinstance(data.get("input") or {}, dict):
        data["input"] = {**(data.get("input") or {}), **input_override}
    try:
        return Workflow.model_validate(data)
    except ValidationError as exc:
        typer.secho(f"Invalid workflow file {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _load_schema(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if path is None:
        return None
    try:
        schema = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        typer.secho(f"Invalid schema file {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not isinstance(schema, dict):
        typer.secho(f"Invalid schema file {path}: expected a JSON object", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return schema


@app.command("run")
def run(
    ctx: typer.Context,
    model: str,
    prompt: str,
    system: Optional[str] = typer.Option(None, "--system", help="System prompt"),
    schema: Optional[Path] = typer.Option(
        None, "--schema", help="JSON schema file for structured output"
    ),
) -> None:
    """
    Execute a single model call.

    Example:
        relayflow run openai:gpt-4o-mini "Summarize the plot of Hamlet"
    """
    output_schema = _load_schema(schema)
    engine = WorkflowEngine(_settings(ctx))
    report = asyncio.run(
        engine.run_single(
            RunRequest(
                model=model, prompt=prompt, system_prompt=system, output_schema=output_schema
            )
        )
    )
    _echo_model(report)
    if not report.success:
        raise typer.Exit(code=1)


@workflow_app.command("run")
def workflow_run(
    ctx: typer.Context,
    workflow_path: Path,
    input: Optional[str] = typer.Option(
        None, "--input", help="JSON object merged over the file's input"
    ),
) -> None:
    """
    Execute a workflow file (YAML or JSON).

    The file holds ``name``, ``steps`` and ``input``. Prints the workflow
    report; exits with code 1 if the workflow failed.

    Example:
        relayflow workflow run ./pipeline.yaml --input '{"topic": "tides"}'
    """
    workflow = _load_workflow(workflow_path, _parse_input(input))
    engine = WorkflowEngine(_settings(ctx))
    report = asyncio.run(engine.execute(workflow))
    _echo_model(report)
    if not report.success:
        raise typer.Exit(code=1)


@workflow_app.command("validate")
def workflow_validate(ctx: typer.Context, workflow_path: Path) -> None:
    """
    Validate a workflow file without calling any model (free).

    Checks for cycles, dependency references and model/tool id formats, and
    prints the execution order and parallel groups.
    """
    workflow = _load_workflow(workflow_path, {})
    engine = WorkflowEngine(_settings(ctx))
    report = engine.validate(workflow.steps)
    _echo_model(report)
    if not report.valid:
        raise typer.Exit(code=1)


@skills_app.command("list")
def skills_list(
    category: Optional[str] = typer.Option(None, help="Filter by category"),
) -> None:
    """List the pre-built workflow skills."""
    skills = list_skills(category)
    if not skills:
        typer.echo("No skills found")
        return
    for skill in skills:
        typer.echo(f"{skill.name}\t{skill.category}\t{skill.description}")
        typer.echo(f"  Models: {', '.join(skill.models)}")
        typer.echo(f"  Context reduction: {skill.context_reduction}")


@skills_app.command("run")
def skills_run(
    ctx: typer.Context,
    name: str,
    input: Optional[str] = typer.Option(None, "--input", help="JSON object input"),
) -> None:
    """Run a pre-built skill with the given input."""
    try:
        skill = get_skill(name)
        workflow = skill.build_workflow(_parse_input(input))
    except (KeyError, ValueError) as exc:
        typer.secho(str(exc).strip("'\""), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    engine = WorkflowEngine(_settings(ctx))
    report = asyncio.run(engine.execute(workflow))
    _echo_model(report)
    if not report.success:
        raise typer.Exit(code=1)


@models_app.command("list")
def models_list(
    ctx: typer.Context,
    provider: Optional[str] = typer.Option(None, help="Filter by provider"),
) -> None:
    """List known models with pricing and whether their provider is configured."""
    credentials = CredentialStore(_settings(ctx).providers)
    for info in list_models(provider, credentials=credentials):
        status = "configured" if info.configured else "not configured"
        typer.echo(
            f"{info.id}\t${info.input_cost_per_1k_tokens}/${info.output_cost_per_1k_tokens} per 1k\t{status}"
        )


@runs_app.command("list")
def runs_list(
    limit: int = typer.Option(10, help="Number of runs to show (max 50)"),
) -> None:
    """List recent runs, most recent first.

    Only runs recorded by this process are listed, since the run history lives
    in memory and is not persisted between invocations.
    """
    runs = asyncio.run(get_ledger().recent(limit))
    if not runs:
        typer.echo("No runs recorded")
        return
    for record in runs:
        status = "success" if record.success else "failed"
        label = record.name or record.model
        typer.echo(
            f"{record.run_id}\t{record.kind}\t{label}\t{status}\t"
            f"${record.usage.cost_usd:.4f}\t{record.started_at.isoformat()}"
        )


@runs_app.command("show")
def runs_show(run_id: str) -> None:
    """Show the full record of a run recorded by this process."""
    try:
        record = asyncio.run(get_ledger().get(run_id))
    except RunNotFoundError as exc:
        typer.secho(exc.message, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    _echo_model(record)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
