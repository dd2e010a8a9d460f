# site_crawler/crawler/events.py
"""
Crawl notifications: crawl-started, page-crawled and crawl-completed.

Events are put on a queue and delivered by a separate task, so observers
never run on the scheduler's path. An observer that raises is logged and
skipped. Closing waits at most ``drain_timeout`` seconds for queued
deliveries; whatever is still pending after that is dropped.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union

logger = logging.getLogger("SiteCrawler")

CRAWL_STARTED = "crawl_started"
PAGE_CRAWLED = "page_crawled"
CRAWL_COMPLETED = "crawl_completed"

Observer = Callable[[Any], Union[None, Awaitable[None]]]
_F = TypeVar("_F", bound=Observer)


class CrawlEvents:
    """Observer registry with queued delivery."""

    #: Upper bound for flushing queued events when a run ends.
    DRAIN_TIMEOUT: float = 0.5

    def __init__(self, drain_timeout: float = DRAIN_TIMEOUT) -> None:
        self.drain_timeout = drain_timeout
        self._observers: Dict[str, List[Observer]] = {
            CRAWL_STARTED: [],
            PAGE_CRAWLED: [],
            CRAWL_COMPLETED: [],
        }
        self._queue: Optional[asyncio.Queue[Tuple[str, Any]]] = None
        self._task: Optional[asyncio.Task[None]] = None

    # Subscription ---------------------------------------------------------
    def on_crawl_started(self, callback: _F) -> _F:
        self._observers[CRAWL_STARTED].append(callback)
        return callback

    def on_page_crawled(self, callback: _F) -> _F:
        self._observers[PAGE_CRAWLED].append(callback)
        return callback

    def on_crawl_completed(self, callback: _F) -> _F:
        self._observers[CRAWL_COMPLETED].append(callback)
        return callback

    # Delivery -------------------------------------------------------------
    def start(self) -> None:
        """Start the delivery task on the running loop."""
        if self._task is not None and not self._task.done():
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._dispatch(self._queue), name="crawl-events")

    def emit(self, kind: str, payload: Any) -> None:
        """Queue an event. Never blocks and never raises into the caller."""
        if not self._observers.get(kind):
            return
        if self._queue is None:
            logger.debug("Event %s emitted with no delivery task running; dropped", kind)
            return
        self._queue.put_nowait((kind, payload))

    async def aclose(self) -> None:
        """Flush queued events for up to ``drain_timeout`` seconds, then stop delivery."""
        queue, task = self._queue, self._task
        self._queue = self._task = None
        if queue is None or task is None:
            return
        if not task.done():
            try:
                await asyncio.wait_for(queue.join(), timeout=self.drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Observers still busy after %.1f s; dropping %d queued event(s)",
                    self.drain_timeout, queue.qsize(),
                )
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _dispatch(self, queue: asyncio.Queue[Tuple[str, Any]]) -> None:
        while True:
            kind, payload = await queue.get()
            try:
                await self._deliver(kind, payload)
            finally:
                queue.task_done()

    async def _deliver(self, kind: str, payload: Any) -> None:
        for callback in list(self._observers[kind]):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("Observer %r failed on %s", callback, kind, exc_info=True)
