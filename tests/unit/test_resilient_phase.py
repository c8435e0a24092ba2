"""Resilient phase runner tests."""

import asyncio

import pytest

from vibeflow.constants import RESEARCH_FAILED_PLACEHOLDER
from vibeflow.contracts import JobStatus
from vibeflow.errors import ApiError
from vibeflow.phases import run_resilient_phase


async def _answer(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(delay=0.0):
    await asyncio.sleep(delay)
    raise ApiError("LLM API Error: Status 500.", 500)


async def _drain(subscription):
    events = []
    while subscription.pending():
        events.append(await subscription.__anext__())
    return events


@pytest.mark.asyncio
async def test_first_query_failure_keeps_three_slots(notifier):
    subscription = await notifier.subscribe("s1")

    slots = await run_resilient_phase(
        [_fail(), _answer("second"), _answer("third")],
        notifier=notifier,
        session_id="s1",
        job_id="job-1",
    )

    assert slots == [RESEARCH_FAILED_PLACEHOLDER, "second", "third"]
    events = await _drain(subscription)
    assert len(events) == 1
    assert events[0].status == JobStatus.RUNNING
    assert events[0].job_id == "job-1"
    assert "1 of 3 queries failed" in events[0].message
    assert events[0].message.startswith("Warning: Error during research phase.")


@pytest.mark.asyncio
async def test_all_success_emits_no_warning(notifier):
    subscription = await notifier.subscribe("s1")

    slots = await run_resilient_phase(
        [_answer("a", 0.02), _answer("b"), _answer("c", 0.01)],
        notifier=notifier,
        session_id="s1",
        job_id="job-1",
    )

    assert slots == ["a", "b", "c"]
    assert subscription.pending() == 0


@pytest.mark.asyncio
async def test_all_failures_never_raise(notifier):
    subscription = await notifier.subscribe("s1")

    slots = await run_resilient_phase(
        [_fail(), _fail(0.01), _fail()],
        notifier=notifier,
        session_id="s1",
        job_id="job-1",
        phase_name="market research",
        sentinel=None,
    )

    assert slots == [None, None, None]
    events = await _drain(subscription)
    assert len(events) == 1
    assert "market research phase. 3 of 3 queries failed" in events[0].message


@pytest.mark.asyncio
async def test_queries_run_concurrently(notifier):
    started = []

    async def _track(name):
        started.append(name)
        await asyncio.sleep(0.05)
        return name

    loop = asyncio.get_running_loop()
    begin = loop.time()
    slots = await run_resilient_phase(
        [_track("a"), _track("b"), _track("c")],
        notifier=notifier,
        session_id="s1",
        job_id="job-1",
    )

    assert slots == ["a", "b", "c"]
    assert loop.time() - begin < 0.14


@pytest.mark.asyncio
async def test_empty_phase_returns_no_slots(notifier):
    assert await run_resilient_phase([], notifier=notifier, session_id="s", job_id="j") == []


@pytest.mark.asyncio
async def test_notifier_failure_is_swallowed():
    class BrokenNotifier:
        async def send_progress(self, *args):
            raise RuntimeError("channel down")

    slots = await run_resilient_phase(
        [_fail(), _answer("ok")],
        notifier=BrokenNotifier(),
        session_id="s1",
        job_id="job-1",
    )
    assert slots == [RESEARCH_FAILED_PLACEHOLDER, "ok"]
