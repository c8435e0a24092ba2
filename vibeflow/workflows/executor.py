"""Sequential workflow execution.

Steps run strictly in declared order. Each step's params are resolved
against the run's ``ExecutionContext`` before the tool is invoked; a tool
that answers with a ``JobHandle`` is polled through the job manager until
the job is terminal. The first failing step stops the run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..config import VibeflowConfig
from ..constants import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_STEP_TIMEOUT_SECONDS
from ..contracts import ExecutionContext, JobStatus, ToolContext, ToolResult
from ..errors import (
    AppError,
    TemplateResolutionError,
    ToolExecutionError,
    WorkflowStepError,
    error_detail,
)
from ..jobs import JobManager
from ..notifier import BaseProgressNotifier
from ..templates import render_template, resolve_params
from .models import StepTrace, WorkflowDefinition, WorkflowResult, WorkflowStep

if TYPE_CHECKING:
    from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """Runs workflow definitions against a tool registry."""

    def __init__(
        self,
        registry: "ToolRegistry",
        job_manager: JobManager,
        notifier: Optional[BaseProgressNotifier] = None,
        step_timeout: float = DEFAULT_STEP_TIMEOUT_SECONDS,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.registry = registry
        self.job_manager = job_manager
        self.notifier = notifier
        self.step_timeout = step_timeout
        self.poll_interval = poll_interval

    async def run(
        self,
        definition: WorkflowDefinition,
        workflow_input: Optional[Dict[str, Any]],
        config: VibeflowConfig,
        context: ToolContext,
        job_id: Optional[str] = None,
    ) -> WorkflowResult:
        """Execute ``definition`` and return its result. Never raises for step failures.

        When ``job_id`` is given, one progress update per step is recorded on
        that job and pushed through the notifier.
        """
        run_context = ExecutionContext(workflow_input=dict(workflow_input or {}))
        trace: List[StepTrace] = []
        total = len(definition.steps)
        logger.info(f"Starting workflow {definition.name} ({total} steps)")

        for index, step in enumerate(definition.steps, start=1):
            await self._report(
                job_id, context, f"Running step {index}/{total}: {step.id} ({step.tool_name})"
            )
            try:
                output, step_job_id = await self._run_step(step, run_context, config, context)
            except WorkflowStepError as e:
                logger.error(f"Workflow {definition.name} failed at step {step.id}: {e.message}")
                trace.append(
                    StepTrace(
                        step_id=step.id,
                        tool_name=step.tool_name,
                        status=JobStatus.FAILED,
                        job_id=e.context.get("job_id"),
                        error=e.to_detail(),
                    )
                )
                return WorkflowResult(
                    workflow_name=definition.name,
                    status=JobStatus.FAILED,
                    summary=f"Workflow {definition.name} failed at step {step.id}: {e.message}",
                    trace=trace,
                    outputs=dict(run_context.step_outputs),
                    error=e.to_detail(),
                )

            run_context.record_output(step.id, output)
            trace.append(
                StepTrace(
                    step_id=step.id,
                    tool_name=step.tool_name,
                    status=JobStatus.COMPLETED,
                    job_id=step_job_id,
                )
            )
            logger.info(f"Workflow {definition.name}: step {step.id} completed")

        summary, details = self._render_output(definition, run_context)
        logger.info(f"Workflow {definition.name} completed")
        return WorkflowResult(
            workflow_name=definition.name,
            status=JobStatus.COMPLETED,
            summary=summary,
            details=details,
            trace=trace,
            outputs=dict(run_context.step_outputs),
        )

    async def _run_step(
        self,
        step: WorkflowStep,
        run_context: ExecutionContext,
        config: VibeflowConfig,
        context: ToolContext,
    ) -> Tuple[Any, Optional[str]]:
        try:
            params = resolve_params(step.params, run_context)
        except TemplateResolutionError as e:
            raise WorkflowStepError(
                f"Could not resolve parameters for step {step.id}: {e.message}",
                step.id,
                step.tool_name,
                {"cause": e.to_detail()},
                e,
            ) from e

        attempt: Dict[str, Optional[str]] = {"job_id": None}
        try:
            result = await asyncio.wait_for(
                self._invoke_and_wait(step, params, config, context, attempt),
                timeout=self.step_timeout,
            )
        except asyncio.TimeoutError as e:
            raise WorkflowStepError(
                f"Step {step.id} ({step.tool_name}) timed out after {self.step_timeout}s",
                step.id,
                step.tool_name,
                {"job_id": attempt["job_id"]},
                e,
            ) from e
        except Exception as e:
            message = e.message if isinstance(e, AppError) else str(e)
            raise WorkflowStepError(
                f"Step {step.id} ({step.tool_name}) failed: {message}",
                step.id,
                step.tool_name,
                {"job_id": attempt["job_id"], "cause": error_detail(e)},
                e,
            ) from e

        if result.is_error:
            raise WorkflowStepError(
                f"Step {step.id} ({step.tool_name}) failed: {result.first_text}",
                step.id,
                step.tool_name,
                {"job_id": attempt["job_id"], "cause": result.error_details},
            )
        return result.as_output(), attempt["job_id"]

    async def _invoke_and_wait(
        self,
        step: WorkflowStep,
        params: Dict[str, Any],
        config: VibeflowConfig,
        context: ToolContext,
        attempt: Dict[str, Optional[str]],
    ) -> ToolResult:
        outcome = await self.registry.invoke(step.tool_name, params, config, context)
        if isinstance(outcome, ToolResult):
            return outcome

        attempt["job_id"] = outcome.job_id
        logger.debug(f"Step {step.id} waiting on job {outcome.job_id}")
        while True:
            job = self.job_manager.get_job(outcome.job_id)
            if job is None:
                raise ToolExecutionError(
                    f"Job {outcome.job_id} for step {step.id} no longer exists",
                    {"job_id": outcome.job_id},
                )
            if job.is_terminal and job.result is not None:
                return job.result
            await asyncio.sleep(self.poll_interval)

    def _render_output(
        self, definition: WorkflowDefinition, run_context: ExecutionContext
    ) -> Tuple[str, List[str]]:
        default = f"Workflow {definition.name} completed {len(definition.steps)} step(s)."
        if not definition.output.summary and not definition.output.details:
            return default, []
        try:
            summary = (
                render_template(definition.output.summary, run_context)
                if definition.output.summary
                else default
            )
            details = [render_template(d, run_context) for d in definition.output.details]
        except TemplateResolutionError as e:
            logger.warning(
                f"Could not render output of workflow {definition.name}: {e.message}"
            )
            return default, []
        return summary, details

    async def _report(self, job_id: Optional[str], context: ToolContext, message: str) -> None:
        if job_id is None:
            return
        if not self.job_manager.update_job_status(job_id, JobStatus.RUNNING, message):
            return
        if self.notifier is not None:
            await self.notifier.send_progress(
                context.session_id, job_id, JobStatus.RUNNING, message
            )
