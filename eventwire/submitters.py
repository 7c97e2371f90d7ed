"""Work submission capabilities used for asynchronous delivery.

Anything exposing ``submit(callable)`` can back an
:class:`~eventwire.broadcasters.AsyncBroadcaster`; a
:class:`concurrent.futures.Executor` qualifies as is.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Protocol

from .config import get_settings
from .errors import ErrorCategory

logger = logging.getLogger(__name__)


class Submitter(Protocol):
    def submit(self, fn: Callable[[], Any]) -> Any: ...


_default_executor: ThreadPoolExecutor | None = None
_default_lock = threading.Lock()


def default_submitter() -> ThreadPoolExecutor:
    """Return the shared thread pool, creating it on first use."""

    global _default_executor
    with _default_lock:
        if _default_executor is None:
            settings = get_settings()
            _default_executor = ThreadPoolExecutor(
                max_workers=settings.async_workers,
                thread_name_prefix=settings.thread_name_prefix,
            )
        return _default_executor


def shutdown_default_submitter(wait: bool = True) -> None:
    global _default_executor
    with _default_lock:
        executor, _default_executor = _default_executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


class LoopSubmitter:
    """Run submitted thunks on an asyncio event loop.

    Safe to call from any thread. If a thunk returns an awaitable (an
    ``async def`` listener method) it is scheduled as a task on the loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop
        self._tasks: set[asyncio.Task[Any]] = set()

    def submit(self, fn: Callable[[], Any]) -> None:
        self.loop.call_soon_threadsafe(self._run, fn)

    def _run(self, fn: Callable[[], Any]) -> None:
        try:
            result = fn()
        except Exception:
            logger.exception(
                "async_delivery_failed",
                extra={"error_category": ErrorCategory.DELIVERY.value},
            )
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self.loop)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "async_delivery_failed",
                exc_info=task.exception(),
                extra={"error_category": ErrorCategory.DELIVERY.value},
            )

    async def drain(self) -> None:
        """Wait for the tasks spawned so far to finish."""
        # let pending call_soon callbacks run first
        await asyncio.sleep(0)
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
