"""
Tree crawler core components.
"""

from .url_resolver import resolve, URLResolveError, InvalidBase, InvalidCandidate, NotAbsolute
from .work_queue import WorkQueue, CrawlTask, QueueClosed
from .fetcher import WebFetcher, FetchResult, FetchError, BodyReadError
from .parser import LinkExtractor
from .engine import CrawlEngine, CrawlStats, crawl, crawl_async

__all__ = [
    'resolve', 'URLResolveError', 'InvalidBase', 'InvalidCandidate', 'NotAbsolute',
    'WorkQueue', 'CrawlTask', 'QueueClosed',
    'WebFetcher', 'FetchResult', 'FetchError', 'BodyReadError',
    'LinkExtractor',
    'CrawlEngine', 'CrawlStats', 'crawl', 'crawl_async'
]
