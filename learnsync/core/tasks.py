"""Fire-and-forget task group bound to a session."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

from loguru import logger


class BackgroundTasks:
    """
    Holds strong references to background coroutines.

    Failures are logged when the task finishes; nothing is re-raised into
    the code that spawned the task.
    """

    def __init__(self, name: str = "session"):
        self.name = name
        self._tasks: set[asyncio.Task[Any]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str = "task") -> asyncio.Task[Any]:
        """Schedule a coroutine on the running loop."""
        task = asyncio.get_running_loop().create_task(coro, name=f"{self.name}:{label}")
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Background task {} cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task {} failed: {}", task.get_name(), exc)

    async def wait(self) -> None:
        """Wait until every task spawned so far (and any they spawn) is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> int:
        """Cancel pending tasks; returns how many were cancelled."""
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)
