"""Detached background work with a logging sink."""
import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Fire-and-forget task group.

    Tasks are kept referenced until they finish so the event loop cannot
    garbage-collect them mid-flight. A failing task is logged and never
    re-raised to whoever spawned it.
    """

    def __init__(self, name: str = "background"):
        self.name = name
        self._tasks: Set[asyncio.Task] = set()
        self.failures = 0

    def spawn(self, coro: Awaitable, label: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, label))
        return task

    def _finished(self, task: asyncio.Task, label: str):
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"{self.name}: {label} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            self.failures += 1
            logger.error(f"{self.name}: {label} failed: {exc}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float | None = None):
        """Wait for outstanding tasks; cancel whatever is left after timeout."""
        if not self._tasks:
            return
        tasks = list(self._tasks)
        done, not_done = await asyncio.wait(tasks, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            await asyncio.gather(*not_done, return_exceptions=True)
