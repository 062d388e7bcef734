"""
Background dispatcher for work that must not block the request that triggers it.

Tasks live only in memory: a process crash drops whatever is in flight.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskDispatcher:
    """
    Owns detached asyncio tasks.

    Strong references are kept until each task finishes, failures are logged,
    and `shutdown` lets running work finish before cancelling the rest.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self._accepting = True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, coro: Awaitable[None], name: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Schedule `coro` on the running loop and return without awaiting it.

        Returns:
            asyncio.Task | None: The task, or None when the dispatcher is shutting down.
        """
        if not self._accepting:
            logger.warning(f"Dispatcher is shutting down, dropping task {name or coro!r}")
            if asyncio.iscoroutine(coro):
                coro.close()
            return None
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed: {exc}", exc_info=exc)

    async def drain(self) -> None:
        """Wait for every task dispatched so far, including ones they dispatch."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self, timeout: float = 10.0) -> None:
        """
        Stop accepting work, wait up to `timeout` seconds, then cancel stragglers.
        """
        self._accepting = False
        if not self._tasks:
            return
        logger.info(f"Waiting for {len(self._tasks)} background task(s) to finish")
        _, still_running = await asyncio.wait(list(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} background task(s) at shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)
