"""Core contracts exchanged between tools, jobs and observers."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Job lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Output of a tool call, immediate or stored on a finished job."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")
    error_details: Optional[Dict[str, Any]] = Field(default=None, alias="errorDetails")

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, text: str, details: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=True, error_details=details)

    @property
    def first_text(self) -> str:
        return self.content[0].text if self.content else ""

    def as_output(self) -> Dict[str, Any]:
        """JSON form used as a workflow step's output."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class JobHandle(BaseModel):
    """Returned by tools that continue in the background."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    initial_message: str = Field(alias="initialMessage")


class ToolContext(BaseModel):
    """Caller identity passed to every tool invocation."""

    session_id: str = "default"


class ProgressEvent(BaseModel):
    """Ephemeral progress notification; never stored."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    job_id: str = Field(alias="jobId")
    status: JobStatus
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "ProgressEvent":
        return cls.model_validate_json(data)


class ExecutionContext(BaseModel):
    """Data visible to a workflow run: its input and completed step outputs."""

    workflow_input: Dict[str, Any] = Field(default_factory=dict)
    step_outputs: Dict[str, Any] = Field(default_factory=dict)

    def record_output(self, step_id: str, output: Any) -> None:
        if step_id in self.step_outputs:
            raise ValueError(f"Output for step {step_id} already recorded")
        self.step_outputs[step_id] = output
