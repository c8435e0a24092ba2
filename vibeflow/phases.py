"""Resilient multi-query phases.

A tool that fans out several independent queries (e.g. research questions
feeding one synthesis call) runs them through ``run_resilient_phase``: all
queries run concurrently, a failed query becomes a sentinel slot instead
of aborting the phase, and one aggregate warning reports how many failed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, List, Optional, Sequence

from .constants import RESEARCH_FAILED_PLACEHOLDER
from .contracts import JobStatus
from .notifier import BaseProgressNotifier

logger = logging.getLogger(__name__)


async def run_resilient_phase(
    queries: Sequence[Awaitable[Any]],
    *,
    notifier: Optional[BaseProgressNotifier],
    session_id: str,
    job_id: str,
    phase_name: str = "research",
    sentinel: Any = RESEARCH_FAILED_PLACEHOLDER,
) -> List[Any]:
    """Await every query and return one slot per query, in order.

    Slots of failed queries hold ``sentinel``. Never raises.
    """
    if not queries:
        return []

    settled = await asyncio.gather(*queries, return_exceptions=True)

    slots: List[Any] = []
    failures = 0
    for index, outcome in enumerate(settled):
        if isinstance(outcome, BaseException):
            failures += 1
            logger.warning(
                f"Query {index + 1}/{len(settled)} of {phase_name} phase failed for job {job_id}: {outcome!r}"
            )
            slots.append(sentinel)
        else:
            slots.append(outcome)

    if failures:
        message = (
            f"Warning: Error during {phase_name} phase. "
            f"{failures} of {len(settled)} queries failed; continuing with partial results."
        )
        if notifier is not None:
            try:
                await notifier.send_progress(session_id, job_id, JobStatus.RUNNING, message)
            except Exception as e:
                logger.error(f"Failed to report {phase_name} phase warning for job {job_id}: {e}")

    return slots
