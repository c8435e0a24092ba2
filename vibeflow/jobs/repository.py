"""Repository abstraction for job records."""

from __future__ import annotations

from typing import Protocol

from .models import Job


class JobRepository(Protocol):
    """Protocol for job storage backends.

    Methods are synchronous so that a manager operation built on them has
    no suspension point and runs as one uninterrupted step on the loop.
    """

    def add(self, job: Job) -> None:
        """Store a new job record."""

    def get(self, job_id: str) -> Job | None:
        """Return the job with ``job_id`` or ``None``."""

    def save(self, job: Job) -> None:
        """Persist changes to an existing job record."""

    def delete(self, job_id: str) -> bool:
        """Remove a job record; return ``True`` when one was removed."""

    def list_all(self) -> list[Job]:
        """Return all stored jobs."""
