"""Coalescing scheduler for deferred async actions."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DebouncedTask:
    """Run an async action once a burst of ``schedule()`` calls goes quiet.

    Each call restarts the delay, so at most one run is pending at a time.
    Must be used from within a running event loop.
    """

    def __init__(self, delay: float, action: Callable[[], Awaitable[object]]):
        self.delay = delay
        self._action = action
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Drop the pending run, if any. A run already executing is left alone."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def flush(self) -> None:
        """Run the pending action immediately instead of waiting out the delay."""
        if self.pending:
            self.cancel()
            await self._action()

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        # Detach before running so a new schedule() cannot cancel this run
        self._task = None
        try:
            await self._action()
        except Exception:
            # Nothing awaits this task, so report the failure here
            logger.exception("Debounced action failed")
