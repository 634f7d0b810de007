"""
Recursive Tree Crawler

Fetches a page, follows its links up to a bounded depth and returns the
visited pages as a tree.
"""

__version__ = "1.0.0"
__author__ = "Alex Nguyen"
__description__ = "A concurrent depth-bounded web crawler that builds a tree of visited pages"
