"""Shared fixtures and fake tools."""

import asyncio
from functools import partial
from typing import Any, Dict, List

import pytest
from pydantic import BaseModel, ConfigDict

import vibeflow.jobs as jobs
import vibeflow.notifier as notifier_module
from vibeflow.background import JobReporter, spawn_background_job
from vibeflow.config import LLMConfig, VibeflowConfig
from vibeflow.contracts import JobHandle, ToolContext, ToolResult
from vibeflow.errors import ToolExecutionError
from vibeflow.jobs import JobManager
from vibeflow.notifier.inmemory import InMemoryProgressNotifier
from vibeflow.runtime import set_runtime
from vibeflow.tools.base import Tool


class FreeformInput(BaseModel):
    model_config = ConfigDict(extra="allow")


class RecordingTool(Tool):
    """Immediate tool returning a fixed text and recording every call."""

    description = "Records calls"
    input_model = FreeformInput

    def __init__(self, name: str, text: str = "ok") -> None:
        self.name = name
        self.text = text
        self.calls: List[Dict[str, Any]] = []

    async def execute(self, params, config, context):
        self.calls.append(params.model_dump())
        return ToolResult.text(self.text)


class BackgroundTool(Tool):
    """Background tool that reports one progress line then finishes."""

    description = "Runs in the background"
    input_model = FreeformInput

    def __init__(
        self,
        name: str,
        job_manager: JobManager,
        notifier=None,
        text: str = "done",
        fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.job_manager = job_manager
        self.notifier = notifier
        self.text = text
        self.fail = fail
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []

    async def execute(self, params, config, context) -> JobHandle:
        self.calls.append(params.model_dump())
        return spawn_background_job(
            job_manager=self.job_manager,
            notifier=self.notifier,
            tool_name=self.name,
            params=params.model_dump(),
            context=context,
            body=partial(self._run, params),
            label=self.name,
        )

    async def _run(self, params, reporter: JobReporter) -> ToolResult:
        await reporter.progress(f"{self.name} working...")
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ToolExecutionError(f"{self.name} exploded", {"tool_name": self.name})
        return ToolResult.text(self.text)


async def wait_for_terminal(job_manager: JobManager, job_id: str, timeout: float = 2.0):
    """Yield to the loop until the job is terminal."""

    async def _poll():
        while True:
            job = job_manager.get_job(job_id)
            if job is not None and job.is_terminal:
                return job
            await asyncio.sleep(0.01)

    return await asyncio.wait_for(_poll(), timeout)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep tests independent of local config files, env and singletons."""
    monkeypatch.setenv("VIBEFLOW_CONFIG", str(tmp_path / "missing-config.yaml"))
    for name in (
        "OPENROUTER_API_KEY",
        "OPENROUTER_BASE_URL",
        "GITHUB_API_KEY",
        "VIBEFLOW_OUTPUT_DIR",
        "VIBEFLOW_WORKFLOWS",
        "VIBEFLOW_NOTIFIER",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    jobs._manager_instance = None
    notifier_module._notifier_instance = None
    set_runtime(None)
    yield
    jobs._manager_instance = None
    notifier_module._notifier_instance = None
    set_runtime(None)


@pytest.fixture
def job_manager() -> JobManager:
    return JobManager()


@pytest.fixture
def notifier() -> InMemoryProgressNotifier:
    return InMemoryProgressNotifier()


@pytest.fixture
def config(tmp_path) -> VibeflowConfig:
    return VibeflowConfig(
        llm=LLMConfig(api_key="test-key"),
        output_dir=str(tmp_path / "output"),
    )


@pytest.fixture
def context() -> ToolContext:
    return ToolContext(session_id="session-1")
