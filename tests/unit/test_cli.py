import json

from typer.testing import CliRunner

from conftest import BackgroundTool, RecordingTool
from vibeflow.cli import app
from vibeflow.config import VibeflowConfig
from vibeflow.jobs import JobManager
from vibeflow.notifier.inmemory import InMemoryProgressNotifier
from vibeflow.runtime import Runtime, set_runtime
from vibeflow.workflows import parse_workflows


def _setup_runtime(workflows=None) -> Runtime:
    job_manager = JobManager()
    runtime = Runtime.create(
        VibeflowConfig(),
        job_manager=job_manager,
        notifier=InMemoryProgressNotifier(),
        workflows=workflows or {},
    )
    set_runtime(runtime)
    return runtime


def test_tool_list_shows_builtin_tools():
    _setup_runtime()

    result = CliRunner().invoke(app, ["tool", "list"])

    assert result.exit_code == 0, f"Output: {result.stdout}"
    for name in (
        "generate-user-stories",
        "generate-prd",
        "generate-rules",
        "get-job-result",
        "run-workflow",
    ):
        assert name in result.stdout


def test_tool_run_waits_for_background_job():
    runtime = _setup_runtime()
    runtime.config.workflows.poll_interval_seconds = 0.01
    runtime.registry.register(BackgroundTool("bg", runtime.job_manager, text="all done"))

    result = CliRunner().invoke(app, ["tool", "run", "bg", "--params", '{"x": 1}'])

    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "bg started. Job ID:" in result.stdout
    assert "[running] bg working..." in result.stdout
    assert "all done" in result.stdout


def test_tool_run_failure_exits_non_zero():
    _setup_runtime()

    result = CliRunner().invoke(app, ["tool", "run", "get-job-result", "--params", '{"jobId": "nope"}'])

    assert result.exit_code == 1
    assert "Job with ID nope not found." in result.stdout


def test_tool_run_rejects_bad_json():
    _setup_runtime()
    result = CliRunner().invoke(app, ["tool", "run", "get-job-result", "--params", "{oops"])
    assert result.exit_code == 2


def test_tool_run_unknown_tool():
    _setup_runtime()
    result = CliRunner().invoke(app, ["tool", "run", "missing"])
    assert result.exit_code == 1


def test_workflow_list_and_run():
    workflows = parse_workflows(
        {
            "workflows": {
                "pair": {
                    "description": "Two echo steps",
                    "steps": [
                        {"id": "first", "toolName": "echo-a", "params": {"topic": "{{workflow.input.topic}}"}},
                        {"id": "second", "toolName": "echo-b", "params": {"prev": "{{steps.first.output.content[0].text}}"}},
                    ],
                    "output": {"summary": "Finished {{workflow.input.topic}}"},
                }
            }
        }
    )
    runtime = _setup_runtime(workflows)
    second = runtime.registry.register(RecordingTool("echo-b", text="B"))
    runtime.registry.register(RecordingTool("echo-a", text="A"))

    listed = CliRunner().invoke(app, ["workflow", "list"])
    assert listed.exit_code == 0
    assert "pair\tfirst -> second" in listed.stdout

    result = CliRunner().invoke(
        app, ["workflow", "run", "pair", "--input", json.dumps({"topic": "todo"})]
    )
    assert result.exit_code == 0, f"Output: {result.stdout}"
    assert "first\techo-a\tcompleted" in result.stdout
    assert "second\techo-b\tcompleted" in result.stdout
    assert "Finished todo" in result.stdout
    assert second.calls == [{"prev": "A"}]


def test_workflow_run_missing():
    _setup_runtime()
    result = CliRunner().invoke(app, ["workflow", "run", "ghost"])
    assert result.exit_code == 1
    assert "Workflow 'ghost' not found" in result.stdout


def test_models_refresh_prints_mapping(monkeypatch):
    _setup_runtime()

    async def fake_refresh(config, client=None):
        return {"phi-4": "microsoft/phi-4", "gpt-4o": "openai/gpt-4o"}

    monkeypatch.setattr("vibeflow.cli.update_available_models", fake_refresh)

    result = CliRunner().invoke(app, ["models", "refresh"])

    assert result.exit_code == 0, f"Output: {result.stdout}"
    lines = result.stdout.splitlines()
    assert lines.index("gpt-4o\topenai/gpt-4o") < lines.index("phi-4\tmicrosoft/phi-4")


def test_models_refresh_without_key_fails():
    _setup_runtime()
    result = CliRunner().invoke(app, ["models", "refresh"])
    assert result.exit_code == 1


def test_workflow_list_empty():
    _setup_runtime()
    result = CliRunner().invoke(app, ["workflow", "list"])
    assert result.exit_code == 0
    assert "No workflows found" in result.stdout
