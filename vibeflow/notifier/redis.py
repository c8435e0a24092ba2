"""Redis pub/sub progress notifier for observers in other processes."""

from __future__ import annotations

import logging
from typing import Any, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from ..constants import REDIS_CHANNEL_PREFIX
from ..contracts import JobStatus, ProgressEvent
from .base import BaseProgressNotifier, Subscription

logger = logging.getLogger(__name__)


def channel_for(session_id: str) -> str:
    return f"{REDIS_CHANNEL_PREFIX}{session_id}"


class RedisSubscription(Subscription):
    """Subscriber reading one session's pub/sub channel."""

    def __init__(self, session_id: str, pubsub: Any) -> None:
        super().__init__(session_id)
        self._pubsub = pubsub

    async def __anext__(self) -> ProgressEvent:
        while not self.closed:
            message = await self._pubsub.get_message(
                ignore_subscribe_messages=True, timeout=1.0
            )
            if message is None or message.get("type") != "message":
                continue
            try:
                return ProgressEvent.from_json(message["data"])
            except ValueError as e:
                logger.warning(f"Failed to parse progress event: {e}")
        raise StopAsyncIteration

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self._pubsub.unsubscribe(channel_for(self.session_id))
        await self._pubsub.aclose()


class RedisProgressNotifier(BaseProgressNotifier):
    """Publish progress events on per-session Redis channels."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisProgressNotifier")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def send_progress(
        self, session_id: str, job_id: str, status: JobStatus, message: str
    ) -> None:
        event = ProgressEvent(
            session_id=session_id, job_id=job_id, status=status, message=message
        )
        try:
            if not self._redis:
                await self.connect()
            receivers = await self._redis.publish(channel_for(session_id), event.to_json())
        except Exception as e:
            logger.error(f"Failed to publish progress for job {job_id}: {e}")
            return
        if not receivers:
            logger.debug(
                f"No subscribers for session {session_id}; dropped event for job {job_id}"
            )

    async def subscribe(self, session_id: str) -> RedisSubscription:
        if not self._redis:
            await self.connect()
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(channel_for(session_id))
        return RedisSubscription(session_id, pubsub)

    async def subscriber_count(self, session_id: str) -> int:
        if not self._redis:
            await self.connect()
        counts = await self._redis.pubsub_numsub(channel_for(session_id))
        return int(counts[0][1]) if counts else 0
