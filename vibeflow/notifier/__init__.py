"""Progress notifier factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import VibeflowConfig, load_config
from .base import BaseProgressNotifier, Subscription
from .inmemory import InMemoryProgressNotifier

_notifier_instance: BaseProgressNotifier | None = None


def get_notifier(
    backend: Optional[str] = None, config: Optional[VibeflowConfig] = None
) -> BaseProgressNotifier:
    """Return the process-wide progress notifier.

    The backend is taken from ``backend``, the ``VIBEFLOW_NOTIFIER``
    environment variable or the loaded configuration, in that order.
    """

    global _notifier_instance
    if _notifier_instance is not None and backend is None and config is None:
        return _notifier_instance

    config = config or load_config()
    backend = (
        backend
        or os.getenv("VIBEFLOW_NOTIFIER")
        or config.notifier.backend
    ).lower()

    if backend == "inmemory":
        _notifier_instance = InMemoryProgressNotifier()
    elif backend == "redis":
        from .redis import RedisProgressNotifier

        redis_conf = config.notifier.redis
        _notifier_instance = RedisProgressNotifier(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
        )
    else:
        raise ValueError(f"Unsupported notifier backend: {backend}")

    return _notifier_instance


__all__ = [
    "BaseProgressNotifier",
    "InMemoryProgressNotifier",
    "Subscription",
    "get_notifier",
]
