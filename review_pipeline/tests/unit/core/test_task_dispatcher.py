import asyncio
import logging

import pytest

from review_pipeline.core.task_dispatcher import BackgroundTaskDispatcher


@pytest.mark.asyncio
async def test_dispatch_returns_before_work_finishes():
    dispatcher = BackgroundTaskDispatcher()
    started = asyncio.Event()
    release = asyncio.Event()

    async def work():
        started.set()
        await release.wait()

    task = dispatcher.dispatch(work(), name="slow")
    await started.wait()

    assert dispatcher.pending == 1
    assert task.get_name() == "slow"
    release.set()
    await dispatcher.drain()
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_failures_are_logged_not_raised(caplog):
    dispatcher = BackgroundTaskDispatcher()

    async def boom():
        raise RuntimeError("translator exploded")

    with caplog.at_level(logging.ERROR, logger="review_pipeline.core.task_dispatcher"):
        dispatcher.dispatch(boom(), name="boom")
        await dispatcher.drain()

    assert "translator exploded" in caplog.text
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_drain_waits_for_nested_dispatches():
    dispatcher = BackgroundTaskDispatcher()
    done = []

    async def child():
        done.append("child")

    async def parent():
        dispatcher.dispatch(child())
        done.append("parent")

    dispatcher.dispatch(parent())
    await dispatcher.drain()

    assert done == ["parent", "child"]


@pytest.mark.asyncio
async def test_shutdown_cancels_stragglers_and_refuses_new_work():
    dispatcher = BackgroundTaskDispatcher()
    finished = []

    async def quick():
        finished.append("quick")

    async def forever():
        await asyncio.sleep(3600)

    dispatcher.dispatch(quick())
    straggler = dispatcher.dispatch(forever())
    await dispatcher.shutdown(timeout=0.1)

    assert finished == ["quick"]
    assert straggler.cancelled()
    assert dispatcher.pending == 0

    late = forever()
    assert dispatcher.dispatch(late) is None
