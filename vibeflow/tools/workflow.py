"""Background tool running a loaded workflow."""

from __future__ import annotations

from functools import partial
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..background import JobReporter, spawn_background_job
from ..config import VibeflowConfig
from ..contracts import JobHandle, ToolContext, ToolResult
from ..errors import ConfigurationError, ToolExecutionError
from ..jobs import JobManager
from ..notifier import BaseProgressNotifier
from ..workflows import WorkflowDefinition, WorkflowExecutor
from .base import Tool


class RunWorkflowInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    workflow_name: str = Field(alias="workflowName", min_length=1)
    workflow_input: Dict[str, Any] = Field(default_factory=dict, alias="workflowInput")


class RunWorkflowTool(Tool):
    name = "run-workflow"
    description = "Run a named workflow in the background."
    input_model = RunWorkflowInput

    def __init__(
        self,
        job_manager: JobManager,
        notifier: Optional[BaseProgressNotifier],
        executor: WorkflowExecutor,
        workflows: Mapping[str, WorkflowDefinition],
    ) -> None:
        self.job_manager = job_manager
        self.notifier = notifier
        self.executor = executor
        self.workflows = workflows

    async def execute(
        self, params: RunWorkflowInput, config: VibeflowConfig, context: ToolContext
    ) -> JobHandle:
        return spawn_background_job(
            job_manager=self.job_manager,
            notifier=self.notifier,
            tool_name=self.name,
            params=params.model_dump(by_alias=True),
            context=context,
            body=partial(self._run, params, config, context),
            label=f"Workflow {params.workflow_name}",
        )

    async def _run(
        self,
        params: RunWorkflowInput,
        config: VibeflowConfig,
        context: ToolContext,
        reporter: JobReporter,
    ) -> ToolResult:
        definition = self.workflows.get(params.workflow_name)
        if definition is None:
            raise ConfigurationError(
                f"Workflow '{params.workflow_name}' is not defined",
                {"workflow": params.workflow_name, "available": sorted(self.workflows)},
            )

        result = await self.executor.run(
            definition, params.workflow_input, config, context, job_id=reporter.job_id
        )
        if not result.succeeded:
            raise ToolExecutionError(
                result.summary,
                {
                    "workflow": definition.name,
                    "trace": [entry.model_dump(mode="json") for entry in result.trace],
                    "step_error": result.error,
                },
            )

        text = result.summary
        if result.details:
            text += "\n\n" + "\n".join(result.details)
        return ToolResult.text(text)
