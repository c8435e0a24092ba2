"""Fire-and-forget execution of tool bodies as tracked jobs.

``spawn_background_job`` creates a job, schedules the body as an asyncio
task and returns a ``JobHandle`` straight away. The task is the only writer
of the job's progress and terminal result; every exception raised by the
body ends up as a FAILED result instead of escaping the task.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from .contracts import JobHandle, JobStatus, ToolContext, ToolResult
from .errors import AppError, ToolExecutionError
from .jobs import JobManager
from .notifier import BaseProgressNotifier

logger = logging.getLogger(__name__)

# Strong references to running job tasks; the loop only keeps weak ones.
_background_tasks: Set[asyncio.Task] = set()


class JobReporter:
    """Progress sink handed to a running job body."""

    def __init__(
        self,
        job_manager: JobManager,
        notifier: Optional[BaseProgressNotifier],
        job_id: str,
        session_id: str,
    ) -> None:
        self.job_manager = job_manager
        self.notifier = notifier
        self.job_id = job_id
        self.session_id = session_id

    async def progress(self, message: str) -> None:
        """Append ``message`` to the job log and push it to observers."""
        if not self.job_manager.update_job_status(self.job_id, JobStatus.RUNNING, message):
            return
        await self.notify(JobStatus.RUNNING, message)

    async def notify(self, status: JobStatus, message: str) -> None:
        if self.notifier is None:
            return
        await self.notifier.send_progress(self.session_id, self.job_id, status, message)


JobBody = Callable[[JobReporter], Awaitable[ToolResult]]


def spawn_background_job(
    *,
    job_manager: JobManager,
    notifier: Optional[BaseProgressNotifier],
    tool_name: str,
    params: Dict[str, Any],
    context: ToolContext,
    body: JobBody,
    label: str,
) -> JobHandle:
    """Create a job for ``tool_name`` and run ``body`` in the background.

    Must be called from a running event loop. The body starts on the next
    loop iteration, so the returned job is still PENDING.
    """
    job_id = job_manager.create_job(tool_name, params)
    reporter = JobReporter(job_manager, notifier, job_id, context.session_id)

    task = asyncio.create_task(_run_job(reporter, tool_name, body), name=f"job-{job_id}")
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)

    return JobHandle(
        job_id=job_id, initial_message=f"{label} started. Job ID: {job_id}"
    )


async def _run_job(reporter: JobReporter, tool_name: str, body: JobBody) -> None:
    job_id = reporter.job_id
    try:
        result = await body(reporter)
    except Exception as e:
        logger.error(f"Error during background job {job_id} ({tool_name}): {e}", exc_info=True)
        wrapped = (
            e
            if isinstance(e, AppError)
            else ToolExecutionError(str(e), {"tool_name": tool_name}, e)
        )
        result = ToolResult.error(
            f"Error during background job {job_id} ({tool_name}): {wrapped.message}",
            wrapped.to_detail(),
        )

    if not reporter.job_manager.set_job_result(job_id, result):
        return
    if result.is_error:
        await reporter.notify(JobStatus.FAILED, result.first_text)
    else:
        await reporter.notify(JobStatus.COMPLETED, f"{tool_name} completed successfully")
