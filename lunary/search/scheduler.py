"""Cancellable scheduled tasks on the running asyncio loop."""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class ScheduledHandle:
    """Handle returned by :meth:`TaskScheduler.schedule`.

    Cancelling only has an effect while the delay is still running: once the
    callback has started it is left to complete.
    """

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.fired = False
        self.cancelled = False
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return not self.fired and not self.cancelled

    @property
    def task(self) -> "asyncio.Task[None] | None":
        return self._task

    def cancel(self) -> bool:
        if not self.pending:
            return False
        self.cancelled = True
        if self._task is not None:
            self._task.cancel()
        return True


class TaskScheduler:
    """``schedule(delay, fn) -> handle`` / ``cancel(handle)`` over asyncio."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(
        self, delay: float, callback: Callable[[], Awaitable[None]]
    ) -> ScheduledHandle:
        """Run ``callback`` after ``delay`` seconds unless cancelled first."""
        handle = ScheduledHandle(delay)

        async def _run() -> None:
            await asyncio.sleep(delay)
            if handle.cancelled:
                return
            handle.fired = True
            try:
                await callback()
            except Exception as e:
                logger.error(
                    "Scheduled callback failed", error=str(e), exc_info=True
                )

        task = asyncio.get_running_loop().create_task(_run())
        handle._task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return handle

    def cancel(self, handle: ScheduledHandle | None) -> bool:
        if handle is None:
            return False
        return handle.cancel()

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel everything still pending and wait for it to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
