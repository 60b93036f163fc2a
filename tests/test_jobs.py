"""Tests for search.jobs (background job registry)."""

from __future__ import annotations

import asyncio

import pytest

from websum.search.jobs import SearchJobs


@pytest.mark.anyio
async def test_job_is_dropped_from_registry_when_done() -> None:
    jobs = SearchJobs()
    done = asyncio.Event()

    async def work():
        done.set()

    jobs.submit(1, work())
    await jobs.wait(1)

    assert done.is_set()
    assert len(jobs) == 0
    assert not jobs.is_running(1)


@pytest.mark.anyio
async def test_duplicate_submit_is_rejected() -> None:
    jobs = SearchJobs()
    gate = asyncio.Event()

    async def work():
        await gate.wait()

    jobs.submit(7, work())
    second = work()
    with pytest.raises(ValueError):
        jobs.submit(7, second)

    gate.set()
    await jobs.wait(7)


@pytest.mark.anyio
async def test_cancel_and_shutdown() -> None:
    jobs = SearchJobs()

    async def forever():
        await asyncio.sleep(3600)

    jobs.submit(1, forever())
    jobs.submit(2, forever())
    assert jobs.is_running(1)

    assert jobs.cancel(1) is True
    await jobs.wait(1)
    assert jobs.cancel(1) is False

    await jobs.shutdown()
    assert len(jobs) == 0

