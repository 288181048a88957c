"""
Background Task Spawning

Every fire-and-forget coroutine goes through TaskSpawner so that failures reach the
log instead of disappearing with an un-awaited task.
"""

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class TaskSpawner:
    """Keeps references to running background tasks and logs their failures."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        """
        Schedule a coroutine on the running loop without awaiting it.

        Args:
            coro: Coroutine to run
            description: Human readable label used in log output

        Returns:
            The scheduled task
        """
        task = asyncio.get_running_loop().create_task(coro, name=description)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task cancelled: {task.get_name()}")
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Background task failed: {task.get_name()}",
                exc_info=(type(error), error, error.__traceback__),
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
