"""Paced FIFO queue for outbound scraping requests.

Every fetch issued by any source adapter goes through one shared queue, so the
upstream sites see at most one request at a time with a fixed pause between
consecutive requests, no matter how many callers are waiting.

Usage:
    queue = RequestQueue(delay=0.5)

    html = await queue.add(lambda: client.get("/home"))

    # At shutdown
    await queue.aclose()
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class QueueTask:
    """A deferred request and the future its caller is awaiting."""

    factory: Callable[[], Awaitable[Any]]
    future: asyncio.Future = field(repr=False)


class RequestQueue:
    """
    Single-worker FIFO queue with a fixed delay between tasks.

    Tasks run strictly one after another in submission order. A failing task
    only rejects its own future; the worker moves on to the next one.

    Args:
        delay: Seconds to sleep between two tasks while more are waiting.
    """

    def __init__(self, delay: float = 0.5):
        self._delay = delay
        self._tasks: deque[QueueTask] = deque()
        self._processing = False
        self._worker: Optional[asyncio.Task] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def size(self) -> int:
        """Number of tasks waiting to start."""
        return len(self._tasks)

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def add(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Enqueue a request and wait for its result.

        Args:
            factory: Zero-argument callable returning the awaitable to run.
                It is only invoked once the task reaches the head of the queue.

        Returns:
            Whatever the awaitable returns.

        Raises:
            Whatever the awaitable raises.
        """
        loop = asyncio.get_running_loop()
        task = QueueTask(factory=factory, future=loop.create_future())
        self._tasks.append(task)
        logger.debug("request_queued", queue_size=len(self._tasks))

        if not self._processing:
            self._processing = True
            self._worker = loop.create_task(self._process())

        return await task.future

    async def _process(self) -> None:
        try:
            while self._tasks:
                task = self._tasks.popleft()
                await self._run(task)

                if self._tasks:
                    await asyncio.sleep(self._delay)
        except BaseException:
            self._abandon_pending()
            raise
        finally:
            self._processing = False

    def _abandon_pending(self) -> None:
        """Cancel every waiting task so no caller is left hanging."""
        while self._tasks:
            task = self._tasks.popleft()
            if not task.future.done():
                task.future.cancel()
        logger.warning("request_queue_worker_stopped")

    async def _run(self, task: QueueTask) -> None:
        try:
            result = await task.factory()
        except asyncio.CancelledError:
            if not task.future.done():
                task.future.cancel()
            # Only the worker being cancelled stops the queue; a task that
            # cancelled itself just settles its own caller.
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("queued_request_cancelled")
        except BaseException as e:
            if not task.future.done():
                task.future.set_exception(e)
            logger.debug("queued_request_failed", error=str(e), error_type=type(e).__name__)
            if not isinstance(e, Exception):
                raise
        else:
            if not task.future.done():
                task.future.set_result(result)

    async def aclose(self) -> None:
        """Wait for the worker to drain whatever is still queued."""
        if self._worker is not None and not self._worker.done():
            await self._worker
        self._worker = None
