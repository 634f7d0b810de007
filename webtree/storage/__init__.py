"""
Storage layer for the tree crawler.
"""

from .url_cache import URLCache
from .result_tree import CrawlEntry, ResultWriter, ResultWriteError, UNKNOWN_CONTENT_TYPE, render

__all__ = ['URLCache', 'CrawlEntry', 'ResultWriter', 'ResultWriteError', 'UNKNOWN_CONTENT_TYPE', 'render']
