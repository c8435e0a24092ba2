"""In-memory implementation of the job repository."""

from __future__ import annotations

from typing import Dict

from .models import Job
from .repository import JobRepository


class InMemoryJobRepository(JobRepository):
    """Store jobs in local memory.

    Data is not persisted across process restarts.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}

    def add(self, job: Job) -> None:
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already exists")
        self._jobs[job.id] = job

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def save(self, job: Job) -> None:
        self._jobs[job.id] = job

    def delete(self, job_id: str) -> bool:
        return self._jobs.pop(job_id, None) is not None

    def list_all(self) -> list[Job]:
        return list(self._jobs.values())
