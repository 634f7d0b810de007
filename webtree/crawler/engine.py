"""
Crawl engine that turns a seed URL into a tree of visited pages.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Protocol

from .fetcher import FetchError, FetchResult, WebFetcher
from .parser import LinkExtractor
from .url_resolver import URLResolveError, resolve
from .work_queue import CrawlTask, WorkQueue
from ..storage.result_tree import CrawlEntry, UNKNOWN_CONTENT_TYPE
from ..storage.url_cache import URLCache
from ..utils.config import CrawlSettings
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResult: ...


class Extractor(Protocol):
    def extract_raw_links(self, body: bytes) -> List[str]: ...


@dataclass
class CrawlStats:
    """Statistics for a crawl run."""
    start_time: float
    pages_fetched: int = 0
    fetch_errors: int = 0
    links_discovered: int = 0
    links_admitted: int = 0
    links_unresolvable: int = 0
    duplicates_skipped: int = 0
    timed_out: bool = False

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['elapsed_time'] = round(self.elapsed_time, 3)
        return data


class CrawlEngine:
    """
    Runs one depth-bounded crawl.

    Each task fetches its URL, records a CrawlEntry in the slot its parent
    reserved for it and, below ``max_depth``, submits one child task per
    newly admitted link. Shared state is touched only through
    ``URLCache.admit`` and ``WorkQueue.submit``.
    """

    def __init__(self, settings: CrawlSettings, fetcher: Fetcher,
                 extractor: Optional[Extractor] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.settings = settings
        self.fetcher = fetcher
        self.extractor = extractor or LinkExtractor()
        self.monitor = monitor
        self.logger = get_crawler_logger(__name__)

        self.cache: Optional[URLCache] = None
        self.queue: Optional[WorkQueue] = None
        self.stats = CrawlStats(start_time=time.time())
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def crawl(self, url: str) -> Optional[CrawlEntry]:
        """
        Crawl from ``url`` and return the root of the result tree.

        Blocks until no task is left in flight. The returned entry is None
        only if the deadline expired before the seed finished.
        """
        self.cache = URLCache()
        self.queue = WorkQueue(self.settings, self._process_task, self.monitor)
        self.stats = CrawlStats(start_time=time.time())
        self._semaphore = asyncio.Semaphore(self.settings.max_concurrent_requests)

        seed = self._normalize_seed(url)
        self.cache.admit(seed)

        root = CrawlEntry.with_slots(depth=0, url="", content_type="", num_children=1)

        self.logger.info(f"Starting crawl of {seed} (max depth {self.settings.max_depth})")
        await self.queue.submit(CrawlTask(depth=0, url=seed, parent=root, slot=0))
        await self.queue.run()

        self.stats.timed_out = self.queue.timed_out
        self._log_final_stats()
        return root.children[0]

    def _normalize_seed(self, url: str) -> str:
        try:
            return resolve(url, url)
        except URLResolveError as e:
            # The fetch will fail and record the error on the seed entry
            self.logger.warning(f"Seed URL {url!r} could not be normalized: {e}")
            return url

    async def _process_task(self, task: CrawlTask):
        """Fetch one URL and attach its entry to the parent slot."""
        try:
            async with self._semaphore:
                result = await self.fetcher.fetch(task.url)
        except FetchError as e:
            self.stats.fetch_errors += 1
            if self.monitor:
                self.monitor.record_fetch_error(task.url)
            self.logger.log_url_event(logging.WARNING, task.url, f"Failed to fetch {task.url}: {e}",
                                      depth=task.depth)
            task.parent.children[task.slot] = CrawlEntry.with_slots(
                depth=task.depth, url=task.url, content_type=UNKNOWN_CONTENT_TYPE, error=e
            )
            return

        self.stats.pages_fetched += 1
        if self.monitor:
            self.monitor.record_page_fetched(task.url)

        content_type = result.content_type or UNKNOWN_CONTENT_TYPE

        if task.depth >= self.settings.max_depth:
            task.parent.children[task.slot] = CrawlEntry.with_slots(
                depth=task.depth, url=task.url, content_type=content_type
            )
            self.logger.log_url_event(logging.DEBUG, task.url, f"Reached depth limit at {task.url}",
                                      depth=task.depth)
            return

        admitted = self._admit_links(result)

        entry = CrawlEntry.with_slots(
            depth=task.depth, url=task.url, content_type=content_type, num_children=len(admitted)
        )
        task.parent.children[task.slot] = entry

        for slot, child_url in enumerate(admitted):
            await self.queue.submit(CrawlTask(depth=task.depth + 1, url=child_url, parent=entry, slot=slot))

        self.logger.log_url_event(logging.DEBUG, task.url,
                                  f"Crawled {task.url}: {result.status_code}, queued {len(admitted)} links",
                                  depth=task.depth)

    def _admit_links(self, result: FetchResult) -> List[str]:
        """Resolve and deduplicate the links on a page, keeping extraction order."""
        raw_links = self.extractor.extract_raw_links(result.body)
        base = result.final_url or result.url

        admitted = []
        for raw in raw_links:
            try:
                absolute = resolve(base, raw)
            except URLResolveError as e:
                self.stats.links_unresolvable += 1
                self.logger.debug(f"Dropping link {raw!r} on {base}: {e}")
                continue

            if self.cache.admit(absolute):
                admitted.append(absolute)
            else:
                self.stats.duplicates_skipped += 1

        self.stats.links_discovered += len(raw_links)
        self.stats.links_admitted += len(admitted)
        if self.monitor:
            self.monitor.record_links(len(raw_links), len(admitted))

        return admitted

    def _log_final_stats(self):
        self.logger.info("=== CRAWL COMPLETED ===")
        for name, value in self.stats.to_dict().items():
            if name != 'start_time':
                self.logger.log_crawler_stat(name, value)

    def get_stats(self) -> Dict:
        return self.stats.to_dict()


async def crawl_async(url: str, settings: CrawlSettings, user_agent: str = "webtree/1.0",
                      link_extraction: str = 'html', max_content_size: int = 10 * 1024 * 1024,
                      monitor: Optional[CrawlerMonitor] = None) -> Optional[CrawlEntry]:
    """Crawl ``url`` over HTTP with a fresh fetcher session."""
    async with WebFetcher(
        user_agent=user_agent,
        request_timeout=settings.request_timeout,
        max_concurrent_requests=settings.max_concurrent_requests,
        max_content_size=max_content_size
    ) as fetcher:
        engine = CrawlEngine(settings, fetcher, LinkExtractor(link_extraction), monitor)
        return await engine.crawl(url)


def crawl(url: str, settings: CrawlSettings, **kwargs) -> Optional[CrawlEntry]:
    """Synchronous entry point: run a full crawl and return its tree."""
    return asyncio.run(crawl_async(url, settings, **kwargs))
