#!/usr/bin/env python3
"""
Main entry point for the tree crawler.
"""

import sys

from webtree.cli import main


if __name__ == '__main__':
    sys.exit(main())
