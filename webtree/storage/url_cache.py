"""
URL cache that grants each absolute URL a single scheduling slot per crawl.
"""

import logging
import threading
from typing import Set


class URLCache:
    """
    Records every URL admitted to a crawl run.

    ``admit`` is the only mutating operation. The membership check and the
    insert happen under one lock, so two concurrent callers can never both
    win the same URL, whether they are coroutines or threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._urls: Set[str] = set()
        self.logger = logging.getLogger(__name__)

        self.stats = {
            'total_checks': 0,
            'admitted': 0,
            'duplicates': 0
        }

    def admit(self, url: str) -> bool:
        """
        Admit a URL to the crawl.

        Returns True for the first caller with a given URL, False for every
        later one. No normalization is applied here.
        """
        with self._lock:
            self.stats['total_checks'] += 1
            if url in self._urls:
                self.stats['duplicates'] += 1
                return False
            self._urls.add(url)
            self.stats['admitted'] += 1

        self.logger.debug(f"Admitted URL: {url}")
        return True

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            return self.stats.copy()
