"""Tool registry and built-in job tool tests."""

import pytest

from conftest import BackgroundTool, RecordingTool, wait_for_terminal
from vibeflow.contracts import JobHandle, JobStatus, ToolResult
from vibeflow.errors import ToolNotFoundError, ToolValidationError
from vibeflow.tools import GetJobResultTool, ToolRegistry
from vibeflow.tools.generators import GenerateRulesTool


def test_register_and_lookup():
    registry = ToolRegistry()
    tool = registry.register(RecordingTool("echo"))

    assert registry.get("echo") is tool
    assert "echo" in registry
    assert [t.name for t in registry.tools()] == ["echo"]


def test_duplicate_registration_fails():
    registry = ToolRegistry()
    registry.register(RecordingTool("echo"))
    with pytest.raises(ValueError):
        registry.register(RecordingTool("echo"))


def test_unknown_tool_raises():
    with pytest.raises(ToolNotFoundError) as exc_info:
        ToolRegistry().get("missing")
    assert exc_info.value.context == {"tool_name": "missing"}


@pytest.mark.asyncio
async def test_invoke_validates_before_execute(job_manager, notifier, config, context):
    registry = ToolRegistry()
    tool = registry.register(GenerateRulesTool(job_manager, notifier))

    with pytest.raises(ToolValidationError) as exc_info:
        await registry.invoke("generate-rules", {"ruleCategories": "not-a-list"}, config, context)

    assert exc_info.value.context["tool_name"] == tool.name
    assert job_manager.list_jobs() == []


def test_input_schema_uses_aliases(job_manager):
    schema = GenerateRulesTool(job_manager, None).input_schema()
    assert set(schema["properties"]) == {"productDescription", "userStories", "ruleCategories"}
    assert schema["required"] == ["productDescription"]


@pytest.mark.asyncio
async def test_get_job_result_reports_lifecycle(job_manager, config, context):
    registry = ToolRegistry()
    registry.register(BackgroundTool("bg", job_manager, text="final text", delay=0.05))
    registry.register(GetJobResultTool(job_manager))

    handle = await registry.invoke("bg", {}, config, context)
    assert isinstance(handle, JobHandle)

    pending = await registry.invoke("get-job-result", {"jobId": handle.job_id}, config, context)
    assert not pending.is_error
    assert "status: pending" in pending.first_text

    await wait_for_terminal(job_manager, handle.job_id)
    finished = await registry.invoke("get-job-result", {"jobId": handle.job_id}, config, context)
    assert finished == ToolResult.text("final text")


@pytest.mark.asyncio
async def test_get_job_result_running_shows_last_message(job_manager, config, context):
    job_id = job_manager.create_job("bg")
    job_manager.update_job_status(job_id, JobStatus.RUNNING, "Generating PRD content via LLM...")

    result = await GetJobResultTool(job_manager).execute(
        GetJobResultTool.input_model(jobId=job_id), config, context
    )
    assert "status: running" in result.first_text
    assert "Generating PRD content via LLM..." in result.first_text


@pytest.mark.asyncio
async def test_get_job_result_failed_returns_structured_error(job_manager, config, context):
    registry = ToolRegistry()
    registry.register(BackgroundTool("bg", job_manager, fail=True))
    registry.register(GetJobResultTool(job_manager))

    handle = await registry.invoke("bg", {}, config, context)
    await wait_for_terminal(job_manager, handle.job_id)
    result = await registry.invoke("get-job-result", {"jobId": handle.job_id}, config, context)

    assert result.is_error
    assert result.first_text.startswith("Error during background job")
    assert result.error_details["message"] == "bg exploded"


@pytest.mark.asyncio
async def test_get_job_result_unknown_id(job_manager, config, context):
    result = await GetJobResultTool(job_manager).execute(
        GetJobResultTool.input_model(jobId="nope"), config, context
    )
    assert result.is_error
    assert result.first_text == "Job with ID nope not found."
