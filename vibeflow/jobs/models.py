"""Data models for tracked jobs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..contracts import JobStatus, ToolResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressEntry(BaseModel):
    """One line of a job's progress log."""

    status: JobStatus
    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class Job(BaseModel):
    """Tracked asynchronous execution of a tool."""

    id: str
    tool_name: str
    params: Dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    progress: List[ProgressEntry] = Field(default_factory=list)
    result: Optional[ToolResult] = None
    error_detail: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def last_message(self) -> Optional[str]:
        return self.progress[-1].message if self.progress else None
