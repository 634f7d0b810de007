"""
Pytest configuration and fixtures for webtree tests.
"""
import asyncio
from typing import Dict, List, Optional, Union

import pytest

from webtree.crawler.fetcher import FetchError, FetchResult
from webtree.utils.config import CrawlSettings


def page(*links: str) -> bytes:
    """Build a minimal HTML body linking to ``links`` in order."""
    anchors = "".join(f'<a href="{link}">{link}</a>' for link in links)
    return f"<html><body>{anchors}</body></html>".encode()


class FakeFetcher:
    """
    In-memory stand-in for WebFetcher.

    ``pages`` maps a URL to a body, an exception instance to raise, or a
    FetchResult to return as-is. Unknown URLs raise FetchError.
    """

    def __init__(self, pages: Dict[str, Union[bytes, Exception, FetchResult]],
                 delays: Optional[Dict[str, float]] = None,
                 content_type: str = "text/html; charset=utf-8"):
        self.pages = pages
        self.delays = delays or {}
        self.content_type = content_type
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(url, 0))
            value = self.pages.get(url)
            if value is None:
                raise FetchError(f"Get {url}: no such host")
            if isinstance(value, Exception):
                raise value
            if isinstance(value, FetchResult):
                return value
            return FetchResult(url=url, final_url=url, status_code=200,
                               content_type=self.content_type, body=value)
        finally:
            self.active -= 1


@pytest.fixture
def settings():
    return CrawlSettings(max_depth=2, max_concurrent_requests=4, max_queue_capacity=4)
