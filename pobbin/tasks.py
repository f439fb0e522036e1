import asyncio
import logging
from typing import Any, Coroutine


class BackgroundScheduler:
    """
    Runs coroutines as detached tasks: the caller never waits for them, and a failing task is only logged.
    The scheduler keeps a reference to every running task, otherwise asyncio may garbage collect it halfway.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn_detached(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logging.debug(f"Background task {task.get_name()} was cancelled")
            return
        if (exc := task.exception()) is not None:
            logging.error(f"Background task {task.get_name()} failed: {exc!r}", exc_info=exc)

    async def drain(self) -> None:
        """Wait until all running tasks (including tasks they spawn) are finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
