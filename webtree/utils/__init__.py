"""
Utility modules for the tree crawler.
"""

from .config import Config, ConfigError, ConfigManager, CrawlSettings, load_config

__all__ = ['Config', 'ConfigError', 'ConfigManager', 'CrawlSettings', 'load_config']
