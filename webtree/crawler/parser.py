"""
Extraction of raw link strings from fetched page bodies.
"""

import re
import logging
from typing import List
from bs4 import BeautifulSoup

# Attributes whose values point at other resources
LINK_ATTRIBUTES = ('href', 'src', 'action')

LINK_PATTERN = re.compile(rb'(href|src|action)="([a-zA-Z0-9:/\-._~]+)"')


class LinkExtractor:
    """
    Pulls raw link values out of a page body, in document order.

    Two strategies are available:

    - ``html``: parse the body with BeautifulSoup (lxml) and read every
      ``href``, ``src`` and ``action`` attribute.
    - ``pattern``: scan the raw bytes with a regular expression that only
      accepts double-quoted, unreserved-character values.

    Values are returned as found; resolution is the caller's job.
    """

    def __init__(self, strategy: str = 'html'):
        if strategy not in ('html', 'pattern'):
            raise ValueError(f"Unknown link extraction strategy: {strategy}")
        self.strategy = strategy
        self.logger = logging.getLogger(__name__)

    def extract_raw_links(self, body: bytes) -> List[str]:
        """Return raw link strings from ``body``."""
        if not body:
            return []

        if self.strategy == 'pattern':
            links = self._extract_with_pattern(body)
        else:
            links = self._extract_with_parser(body)

        self.logger.debug(f"Extracted {len(links)} raw links ({self.strategy})")
        return links

    def _extract_with_pattern(self, body: bytes) -> List[str]:
        return [match.group(2).decode('ascii') for match in LINK_PATTERN.finditer(body)]

    def _extract_with_parser(self, body: bytes) -> List[str]:
        soup = BeautifulSoup(body, 'lxml')

        links = []
        for tag in soup.find_all(True):
            for attribute in LINK_ATTRIBUTES:
                value = tag.get(attribute)
                if isinstance(value, str):
                    value = value.strip()
                    if value:
                        links.append(value)
        return links
