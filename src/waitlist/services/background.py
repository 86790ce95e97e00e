"""Fire-and-forget task tracking with a bounded shutdown drain."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class TaskTracker:
    """Counted set of in-flight background tasks.

    Spawned work never blocks or fails the request that started it; failures
    are logged. Shutdown waits for the set to empty, up to a timeout.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str | None = None) -> asyncio.Task[Any]:
        """Schedule `coro` on the running loop and track it until done."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed: %s",
                task.get_name(),
                exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self, timeout: float) -> bool:
        """Wait for in-flight tasks; return True if all finished in time."""
        pending = set(self._tasks)
        if not pending:
            return True
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        if still_pending:
            logger.warning("%d background tasks still running after drain", len(still_pending))
        return not still_pending

    def __len__(self) -> int:
        return len(self._tasks)
