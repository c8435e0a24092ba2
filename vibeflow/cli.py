"""Command line interface for vibeflow tools and workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import load_config
from .contracts import JobHandle, ToolContext, ToolResult
from .errors import AppError
from .llm import update_available_models
from .runtime import Runtime, get_runtime, set_runtime

app = typer.Typer(help="CLI for vibeflow tools and workflows")

# Command groups
tool_app = typer.Typer(help="Commands for invoking tools")
workflow_app = typer.Typer(help="Commands for running workflows")
models_app = typer.Typer(help="Commands for LLM model discovery")

app.add_typer(tool_app, name="tool")
app.add_typer(workflow_app, name="workflow")
app.add_typer(models_app, name="models")


@app.callback()
def main(
    config_path: Optional[Path] = typer.Option(
        None, "--config", help="Path to a YAML configuration file"
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """vibeflow CLI entry point."""
    config = load_config(str(config_path) if config_path else None)
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if config_path:
        set_runtime(Runtime.create(config))


def _parse_json_option(raw: Optional[str], option: str) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        typer.echo(f"Invalid JSON for {option}: {e}", err=True)
        raise typer.Exit(code=2)
    if not isinstance(value, dict):
        typer.echo(f"{option} must be a JSON object", err=True)
        raise typer.Exit(code=2)
    return value


async def _wait_for_job(runtime: Runtime, handle: JobHandle) -> ToolResult:
    """Poll the job, echoing new progress lines, until it is terminal."""
    seen = 0
    while True:
        job = runtime.job_manager.get_job(handle.job_id)
        if job is None:
            return ToolResult.error(f"Job with ID {handle.job_id} not found.")
        for entry in job.progress[seen:]:
            typer.echo(f"[{entry.status.value}] {entry.message}")
        seen = len(job.progress)
        if job.is_terminal and job.result is not None:
            return job.result
        await asyncio.sleep(runtime.config.workflows.poll_interval_seconds)


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    typer.echo(f"Serving vibeflow on http://{host}:{port}")
    uvicorn.run(create_app(get_runtime()), host=host, port=port)


@tool_app.command("list")
def tool_list() -> None:
    """List registered tools."""
    for tool in get_runtime().registry.tools():
        typer.echo(f"{tool.name}\t{tool.description}")


@tool_app.command("run")
def tool_run(
    name: str,
    params: Optional[str] = typer.Option(None, "--params", help="Tool parameters as JSON"),
    session: str = typer.Option("default", "--session", help="Session id for progress events"),
) -> None:
    """Invoke a tool and wait for its result."""
    runtime = get_runtime()
    tool_params = _parse_json_option(params, "--params")

    async def _run() -> ToolResult:
        await runtime.start()
        try:
            outcome = await runtime.invoke_tool(name, tool_params, session)
            if isinstance(outcome, JobHandle):
                typer.echo(outcome.initial_message)
                return await _wait_for_job(runtime, outcome)
            return outcome
        finally:
            await runtime.stop()

    try:
        result = asyncio.run(_run())
    except AppError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(result.first_text)
    if result.is_error:
        raise typer.Exit(code=1)


@workflow_app.command("list")
def workflow_list() -> None:
    """List loaded workflow definitions."""
    workflows = get_runtime().workflows
    if not workflows:
        typer.echo("No workflows found")
        return
    for definition in workflows.values():
        typer.echo(f"{definition.name}\t{' -> '.join(definition.step_ids())}")
        if definition.description:
            typer.echo(f"  {definition.description}")


@workflow_app.command("run")
def workflow_run(
    name: str,
    workflow_input: Optional[str] = typer.Option(
        None, "--input", help="Workflow input as JSON"
    ),
    session: str = typer.Option("default", "--session", help="Session id for progress events"),
) -> None:
    """Run a workflow in the foreground and print its trace."""
    runtime = get_runtime()
    definition = runtime.workflows.get(name)
    if definition is None:
        typer.echo(f"Workflow '{name}' not found")
        raise typer.Exit(code=1)
    data = _parse_json_option(workflow_input, "--input")

    async def _run():
        await runtime.start()
        try:
            return await runtime.executor.run(
                definition, data, runtime.config, ToolContext(session_id=session)
            )
        finally:
            await runtime.stop()

    result = asyncio.run(_run())
    for entry in result.trace:
        typer.echo(f"{entry.step_id}\t{entry.tool_name}\t{entry.status.value}")
    typer.echo(result.summary)
    for line in result.details:
        typer.echo(line)
    if not result.succeeded:
        raise typer.Exit(code=1)


@models_app.command("refresh")
def models_refresh() -> None:
    """Fetch the available models and print them as name/id pairs."""
    runtime = get_runtime()
    try:
        mapping = asyncio.run(update_available_models(runtime.config.llm))
    except AppError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1)
    if not mapping:
        typer.echo("No models found")
        return
    for name, model_id in sorted(mapping.items()):
        typer.echo(f"{name}\t{model_id}")
