"""Process-wide wiring of config, jobs, notifier, tools and workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .config import VibeflowConfig, load_config
from .contracts import ToolContext
from .jobs import JobManager, get_job_manager
from .notifier import BaseProgressNotifier, get_notifier
from .tools import ToolOutcome, ToolRegistry, register_builtin_tools
from .workflows import WorkflowDefinition, WorkflowExecutor, load_workflows

logger = logging.getLogger(__name__)


class Runtime:
    """Everything a surface (HTTP, CLI) needs to invoke tools."""

    def __init__(
        self,
        config: VibeflowConfig,
        job_manager: JobManager,
        notifier: BaseProgressNotifier,
        registry: ToolRegistry,
        executor: WorkflowExecutor,
        workflows: Dict[str, WorkflowDefinition],
    ) -> None:
        self.config = config
        self.job_manager = job_manager
        self.notifier = notifier
        self.registry = registry
        self.executor = executor
        self.workflows = workflows
        self._sweeper: Optional[asyncio.Task] = None

    @classmethod
    def create(
        cls,
        config: Optional[VibeflowConfig] = None,
        job_manager: Optional[JobManager] = None,
        notifier: Optional[BaseProgressNotifier] = None,
        workflows: Optional[Dict[str, WorkflowDefinition]] = None,
    ) -> "Runtime":
        config = config or load_config()
        job_manager = job_manager or get_job_manager(config)
        notifier = notifier or get_notifier(config=config)
        if workflows is None:
            workflows = load_workflows(config.workflows.path)

        registry = ToolRegistry()
        executor = WorkflowExecutor(
            registry,
            job_manager,
            notifier,
            step_timeout=config.workflows.step_timeout_seconds,
            poll_interval=config.workflows.poll_interval_seconds,
        )
        register_builtin_tools(registry, job_manager, notifier, executor, workflows)
        return cls(config, job_manager, notifier, registry, executor, workflows)

    async def start(self) -> None:
        """Connect the notifier and start the job retention sweeper."""
        await self.notifier.connect()
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(
                self.job_manager.run_sweeper(self.config.jobs.sweep_interval_seconds),
                name="job-sweeper",
            )
        logger.info(
            f"Runtime started with {len(self.registry.tools())} tools and {len(self.workflows)} workflows"
        )

    async def stop(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Job sweeper exited with an error: {e!r}")
            self._sweeper = None
        await self.notifier.disconnect()
        logger.info("Runtime stopped")

    async def invoke_tool(
        self, name: str, params: Optional[Dict[str, Any]], session_id: str = "default"
    ) -> ToolOutcome:
        return await self.registry.invoke(
            name, params, self.config, ToolContext(session_id=session_id)
        )


_runtime_instance: Runtime | None = None


def get_runtime() -> Runtime:
    """Return the process-wide runtime, creating it on first use."""

    global _runtime_instance
    if _runtime_instance is None:
        _runtime_instance = Runtime.create()
    return _runtime_instance


def set_runtime(runtime: Optional[Runtime]) -> None:
    """Replace (or with ``None`` reset) the process-wide runtime."""

    global _runtime_instance
    _runtime_instance = runtime
