"""Job store and lifecycle management."""

from __future__ import annotations

from typing import Optional

from ..config import VibeflowConfig, load_config
from ..contracts import JobStatus
from .inmemory import InMemoryJobRepository
from .manager import JobManager
from .models import Job, ProgressEntry
from .repository import JobRepository

_manager_instance: JobManager | None = None


def get_job_manager(config: Optional[VibeflowConfig] = None) -> JobManager:
    """Return the process-wide job manager.

    The first call creates an in-memory store; passing ``config`` replaces
    the instance with one using that configuration's retention settings.
    """

    global _manager_instance
    if _manager_instance is not None and config is None:
        return _manager_instance

    config = config or load_config()
    _manager_instance = JobManager(
        InMemoryJobRepository(), ttl_seconds=config.jobs.ttl_seconds
    )
    return _manager_instance


__all__ = [
    "Job",
    "JobManager",
    "JobRepository",
    "JobStatus",
    "InMemoryJobRepository",
    "ProgressEntry",
    "get_job_manager",
]
