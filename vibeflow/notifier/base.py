"""Base interface for progress notification channels."""

from __future__ import annotations

import abc
from typing import AsyncIterator

from ..contracts import JobStatus, ProgressEvent


class Subscription(metaclass=abc.ABCMeta):
    """A subscriber attached under one session id.

    Iterate it to receive events; ``close`` detaches and may be called any
    number of times.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.closed = False

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self

    @abc.abstractmethod
    async def __anext__(self) -> ProgressEvent:
        raise NotImplementedError

    @abc.abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


class BaseProgressNotifier(metaclass=abc.ABCMeta):
    """Best-effort push channel from running jobs to observers.

    Delivery is at-most-once: events sent while nobody is attached under a
    session id are dropped, and late subscribers never see earlier events.
    """

    async def connect(self) -> None:
        """Open connection to the backend (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the backend (no-op by default)."""
        pass

    @abc.abstractmethod
    async def send_progress(
        self, session_id: str, job_id: str, status: JobStatus, message: str
    ) -> None:
        """Deliver an event to every subscriber of ``session_id``. Never raises."""
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(self, session_id: str) -> Subscription:
        """Attach a new subscriber under ``session_id``."""
        raise NotImplementedError

    @abc.abstractmethod
    async def subscriber_count(self, session_id: str) -> int:
        """Number of subscribers currently attached under ``session_id``."""
        raise NotImplementedError
