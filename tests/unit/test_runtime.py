import asyncio

import pytest

from vibeflow.config import VibeflowConfig
from vibeflow.jobs import JobManager
from vibeflow.notifier.inmemory import InMemoryProgressNotifier
from vibeflow.runtime import Runtime


def _runtime() -> Runtime:
    return Runtime.create(
        VibeflowConfig(),
        job_manager=JobManager(),
        notifier=InMemoryProgressNotifier(),
        workflows={},
    )


@pytest.mark.asyncio
async def test_start_and_stop_manage_the_sweeper():
    runtime = _runtime()

    await runtime.start()
    sweeper = runtime._sweeper
    assert sweeper is not None and not sweeper.done()

    await runtime.stop()
    assert sweeper.cancelled()
    assert runtime._sweeper is None


@pytest.mark.asyncio
async def test_stop_disconnects_notifier_when_sweeper_crashed(monkeypatch):
    runtime = _runtime()
    disconnected = []

    async def crashing_sweeper(interval_seconds):
        raise RuntimeError("sweeper broke")

    async def disconnect():
        disconnected.append(True)

    monkeypatch.setattr(runtime.job_manager, "run_sweeper", crashing_sweeper)
    monkeypatch.setattr(runtime.notifier, "disconnect", disconnect)

    await runtime.start()
    await asyncio.sleep(0.01)
    await runtime.stop()

    assert disconnected == [True]
    assert runtime._sweeper is None
