"""Fire-and-forget task runner bound to the server event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger


class BackgroundTaskRunner:
    """Schedules coroutines without awaiting them and keeps them alive.

    Tasks are referenced until they finish so they are not garbage collected
    mid-flight. Exceptions that escape a task are logged here; callers that
    care about failures handle them inside the coroutine.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Background task {} was cancelled", task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error(
                "Background task {} failed", task.get_name()
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every task scheduled so far, including ones they schedule."""
        while pending := [task for task in self._tasks if not task.done()]:
            _, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.warning(
                    "{} background task(s) still running after {}s", len(not_done), timeout
                )
                return
