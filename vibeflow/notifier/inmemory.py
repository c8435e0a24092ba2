"""In-process progress notifier."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Dict, Optional, Set

from ..constants import DEFAULT_SUBSCRIBER_QUEUE_SIZE
from ..contracts import JobStatus, ProgressEvent
from .base import BaseProgressNotifier, Subscription

logger = logging.getLogger(__name__)


class QueueSubscription(Subscription):
    """Subscriber backed by a bounded ``asyncio.Queue``."""

    def __init__(
        self,
        notifier: "InMemoryProgressNotifier",
        session_id: str,
        maxsize: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE,
    ) -> None:
        super().__init__(session_id)
        self._notifier = notifier
        self._queue: asyncio.Queue[Optional[ProgressEvent]] = asyncio.Queue(maxsize=maxsize)

    def offer(self, event: ProgressEvent) -> bool:
        """Enqueue without waiting; ``False`` when the event was dropped."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def pending(self) -> int:
        return self._queue.qsize()

    async def __anext__(self) -> ProgressEvent:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._notifier._detach(self)
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass


class InMemoryProgressNotifier(BaseProgressNotifier):
    """Session id -> attached subscribers, all in the current process."""

    def __init__(self, queue_size: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE) -> None:
        self._subscribers: Dict[str, Set[QueueSubscription]] = defaultdict(set)
        self._queue_size = queue_size

    async def send_progress(
        self, session_id: str, job_id: str, status: JobStatus, message: str
    ) -> None:
        subscribers = self._subscribers.get(session_id)
        if not subscribers:
            logger.debug(
                f"No subscribers for session {session_id}; dropping event for job {job_id}"
            )
            return

        event = ProgressEvent(
            session_id=session_id, job_id=job_id, status=status, message=message
        )
        for subscription in list(subscribers):
            if not subscription.offer(event):
                logger.warning(
                    f"Subscriber queue full for session {session_id}; dropped event for job {job_id}"
                )

    async def subscribe(self, session_id: str) -> QueueSubscription:
        subscription = QueueSubscription(self, session_id, maxsize=self._queue_size)
        self._subscribers[session_id].add(subscription)
        logger.debug(f"Subscriber attached to session {session_id}")
        return subscription

    async def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    def _detach(self, subscription: QueueSubscription) -> None:
        subscribers = self._subscribers.get(subscription.session_id)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.session_id]
        logger.debug(f"Subscriber detached from session {subscription.session_id}")
