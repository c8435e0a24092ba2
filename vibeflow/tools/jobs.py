"""Immediate tool reporting the state of a background job."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..config import VibeflowConfig
from ..contracts import ToolContext, ToolResult
from ..jobs import JobManager
from .base import Tool


class JobResultInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId", min_length=1)


class GetJobResultTool(Tool):
    name = "get-job-result"
    description = "Return the status of a background job and, once finished, its result."
    input_model = JobResultInput

    def __init__(self, job_manager: JobManager) -> None:
        self.job_manager = job_manager

    async def execute(
        self, params: JobResultInput, config: VibeflowConfig, context: ToolContext
    ) -> ToolResult:
        job = self.job_manager.get_job(params.job_id)
        if job is None:
            return ToolResult.error(
                f"Job with ID {params.job_id} not found.",
                {"type": "NotFound", "message": "Unknown job id", "context": {"job_id": params.job_id}},
            )

        if job.is_terminal and job.result is not None:
            return job.result

        text = f"Job {job.id} ({job.tool_name}) status: {job.status.value}."
        if job.last_message:
            text += f" Last update: {job.last_message}"
        return ToolResult.text(text)
