"""Job lifecycle management.

Handles:
- Job creation (returns immediately, the work runs elsewhere)
- Progress updates appended to the job's log
- Terminal results, written at most once (first write wins)
- Retention sweep of old terminal jobs

No method awaits, so every read-modify-write below runs as a single
uninterrupted step on the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ..constants import DEFAULT_JOB_TTL_SECONDS
from ..contracts import JobStatus, ToolResult
from .inmemory import InMemoryJobRepository
from .models import Job, ProgressEntry, utcnow
from .repository import JobRepository

logger = logging.getLogger(__name__)


class JobManager:
    """Owns job records and their state machine."""

    def __init__(
        self,
        repository: JobRepository | None = None,
        ttl_seconds: float = DEFAULT_JOB_TTL_SECONDS,
    ) -> None:
        self._repository = repository or InMemoryJobRepository()
        self.ttl_seconds = ttl_seconds

    def create_job(self, tool_name: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Create a PENDING job and return its id."""
        job_id = str(uuid.uuid4())
        self._repository.add(Job(id=job_id, tool_name=tool_name, params=dict(params or {})))
        logger.info(f"Created job {job_id} for tool {tool_name}")
        return job_id

    def get_job(self, job_id: str) -> Optional[Job]:
        """Return a snapshot of the job; changes to it are not stored."""
        job = self._repository.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    def list_jobs(self, status: Optional[JobStatus] = None) -> list[Job]:
        jobs = self._repository.list_all()
        if status is not None:
            jobs = [job for job in jobs if job.status == status]
        return [job.model_copy(deep=True) for job in sorted(jobs, key=lambda job: job.created_at)]

    def update_job_status(
        self, job_id: str, status: JobStatus, message: Optional[str] = None
    ) -> bool:
        """Record progress and move the job to RUNNING.

        Returns ``False`` when the job is unknown or already terminal.
        """
        if status.is_terminal:
            raise ValueError(
                f"Terminal status {status.value} must be set through set_job_result"
            )

        job = self._repository.get(job_id)
        if job is None:
            logger.warning(f"Progress update for unknown job {job_id}")
            return False
        if job.is_terminal:
            logger.debug(f"Ignoring progress update for finished job {job_id}")
            return False

        job.status = JobStatus.RUNNING
        job.updated_at = utcnow()
        if message:
            job.progress.append(ProgressEntry(status=JobStatus.RUNNING, message=message))
        self._repository.save(job)
        return True

    def set_job_result(self, job_id: str, result: ToolResult) -> bool:
        """Store the terminal result of a job.

        COMPLETED unless ``result.is_error``. A job that is already terminal
        keeps its first result and ``False`` is returned.
        """
        job = self._repository.get(job_id)
        if job is None:
            logger.warning(f"Result for unknown job {job_id}")
            return False
        if job.is_terminal:
            logger.warning(
                f"Job {job_id} already {job.status.value}; ignoring second result"
            )
            return False

        job.status = JobStatus.FAILED if result.is_error else JobStatus.COMPLETED
        job.result = result
        job.error_detail = result.error_details if result.is_error else None
        job.updated_at = utcnow()
        job.progress.append(
            ProgressEntry(
                status=job.status,
                message=(
                    "Job failed" if result.is_error else "Job completed successfully"
                ),
            )
        )
        self._repository.save(job)
        logger.info(f"Job {job_id} status → {job.status.value}")
        return True

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Delete terminal jobs not updated within ``ttl_seconds``."""
        cutoff = (now or utcnow()) - timedelta(seconds=self.ttl_seconds)
        removed = 0
        for job in self._repository.list_all():
            if job.is_terminal and job.updated_at < cutoff:
                if self._repository.delete(job.id):
                    removed += 1
        if removed:
            logger.info(f"Swept {removed} expired job(s)")
        return removed

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep expired jobs every ``interval_seconds`` until cancelled."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.sweep_expired()
            except Exception as e:
                logger.error(f"Job retention sweep failed: {e!r}")
