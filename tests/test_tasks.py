import asyncio
import logging

import pytest

from pobbin.tasks import BackgroundScheduler


@pytest.mark.anyio
async def test_spawn_detached_does_not_wait():
    scheduler = BackgroundScheduler()
    started, release = asyncio.Event(), asyncio.Event()
    done = []

    async def slow():
        started.set()
        await release.wait()
        done.append(True)

    scheduler.spawn_detached(slow(), name="slow")
    assert len(scheduler) == 1
    await started.wait()
    assert done == []
    release.set()
    await scheduler.drain()
    assert done == [True]
    assert len(scheduler) == 0


@pytest.mark.anyio
async def test_failing_task_is_logged(caplog):
    scheduler = BackgroundScheduler()

    async def fail():
        raise RuntimeError("cache is on fire")

    with caplog.at_level(logging.ERROR):
        scheduler.spawn_detached(fail(), name="failing task")
        await scheduler.drain()
    assert "failing task" in caplog.text
    assert "cache is on fire" in caplog.text
    assert len(scheduler) == 0
