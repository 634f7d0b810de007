"""
Bounded work queue for crawl tasks with global completion detection.

Every submitted task adds +1 to a stream of counter deltas and every finished
task adds -1. A single observer coroutine consumes that stream in order and
closes the queue the moment the running total returns to zero, which is the
only signal that no work is left anywhere in the crawl.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Set

from ..storage.result_tree import CrawlEntry
from ..utils.config import CrawlSettings
from ..utils.monitoring import CrawlerMonitor


class QueueClosed(RuntimeError):
    """Raised when a task is submitted after the queue has closed."""
    pass


@dataclass
class CrawlTask:
    """Fetch ``url`` at ``depth`` and store the result in ``parent.children[slot]``."""
    depth: int
    url: str
    parent: CrawlEntry
    slot: int


# Wakes the dispatch loop once the observer closes the queue
_CLOSED = object()


class WorkQueue:
    """
    Producer/consumer queue of CrawlTasks.

    ``submit`` blocks while ``max_queue_capacity`` tasks are waiting, which
    throttles producers when consumers fall behind. ``run`` is the dispatch
    loop: it starts one asyncio task per dequeued item and returns once the
    in-flight count reaches zero or the optional deadline passes.
    """

    def __init__(self, settings: CrawlSettings,
                 handler: Callable[[CrawlTask], Awaitable[None]],
                 monitor: Optional[CrawlerMonitor] = None):
        self.settings = settings
        self.handler = handler
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)

        self._queue: asyncio.Queue = asyncio.Queue(maxsize=settings.max_queue_capacity)
        self._ticks: asyncio.Queue = asyncio.Queue()
        self._in_flight = 0
        self._submitted = 0
        self._closed = False
        self._running: Set[asyncio.Task] = set()

        self.timed_out = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        """Running total as last seen by the observer."""
        return self._in_flight

    def qsize(self) -> int:
        return self._queue.qsize()

    async def submit(self, task: CrawlTask):
        """
        Add a task to the queue.

        The +1 is posted before the task becomes visible to the dispatch
        loop, so the observer always counts a task before its completion.
        """
        if self._closed:
            raise QueueClosed(f"Cannot submit {task.url}: work queue is closed")

        self._submitted += 1
        self._ticks.put_nowait(1)
        await self._queue.put(task)

    def _close(self):
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def _run_ticker(self):
        """Single observer of the in-flight counter."""
        while True:
            tick = await self._ticks.get()
            self._in_flight += tick

            if self.monitor:
                self.monitor.update_queue(self._in_flight, self._queue.qsize())

            if self._in_flight == 0:
                self.logger.debug("In-flight count reached zero, closing work queue")
                self._close()
                return

    async def _dispatch(self, task: CrawlTask):
        try:
            await self.handler(task)
        except asyncio.CancelledError:
            raise
        except Exception:
            self.logger.exception(f"Unhandled error while processing {task.url}")
        finally:
            self._ticks.put_nowait(-1)

    async def run(self):
        """Dispatch tasks until the crawl completes or the deadline passes."""
        if self._submitted == 0:
            raise RuntimeError("WorkQueue.run() called before any task was submitted")

        loop = asyncio.get_running_loop()
        deadline = None
        if self.settings.max_duration is not None:
            deadline = loop.time() + self.settings.max_duration

        ticker = asyncio.create_task(self._run_ticker())

        try:
            while True:
                timeout = None
                if deadline is not None:
                    timeout = deadline - loop.time()
                    if timeout <= 0:
                        self._expire()
                        break

                try:
                    task = await asyncio.wait_for(self._queue.get(), timeout)
                except asyncio.TimeoutError:
                    self._expire()
                    break

                if task is _CLOSED:
                    break

                unit = asyncio.create_task(self._dispatch(task))
                self._running.add(unit)
                unit.add_done_callback(self._running.discard)
        except asyncio.CancelledError:
            self.logger.warning(f"Crawl cancelled, cancelling {len(self._running)} in-flight tasks")
            self._cancel_running()
            raise
        finally:
            if not ticker.done():
                ticker.cancel()
            pending = list(self._running)
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            await asyncio.gather(ticker, return_exceptions=True)

    def _cancel_running(self):
        """Close the queue and cancel every dispatched unit."""
        self._closed = True
        for unit in list(self._running):
            unit.cancel()

    def _expire(self):
        self.timed_out = True
        self.logger.warning(
            f"Crawl deadline of {self.settings.max_duration}s reached, "
            f"cancelling {len(self._running)} in-flight tasks"
        )
        self._cancel_running()
