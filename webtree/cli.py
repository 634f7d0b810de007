"""
Command-line interface for the tree crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import __version__
from .crawler.engine import crawl_async
from .storage.result_tree import CrawlEntry, ResultWriter, ResultWriteError, render
from .utils.config import Config, ConfigError, ConfigManager, load_config
from .utils.logger import setup_logging
from .utils.monitoring import CrawlerMonitor, MetricsCollector


class CrawlerApp:
    """Main application class for the tree crawler."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.monitor: Optional[CrawlerMonitor] = None

    def setup_signal_handlers(self, task: asyncio.Task):
        """Cancel the running crawl on SIGINT/SIGTERM."""
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, task.cancel)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread
                pass

    async def run(self, url: str, config: Config, output: Optional[str] = None) -> int:
        """Run one crawl, print the tree and optionally save it as JSON."""
        self.logger.info("=== TREE CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {url}")
        self.logger.info(f"Max depth: {config.crawler.max_depth}")
        self.logger.info(f"Max concurrent requests: {config.crawler.max_concurrent_requests}")
        self.logger.info(f"Max queue capacity: {config.crawler.max_queue_capacity}")

        self.monitor = CrawlerMonitor(MetricsCollector(
            enable_prometheus=config.monitoring.metrics_enabled,
            prometheus_port=config.monitoring.prometheus_port
        ))
        self.monitor.metrics.start_server()

        crawl_task = asyncio.create_task(crawl_async(
            url,
            config.crawler.to_settings(),
            user_agent=config.crawler.user_agent,
            link_extraction=config.crawler.link_extraction,
            max_content_size=config.crawler.max_content_size,
            monitor=self.monitor
        ))
        self.setup_signal_handlers(crawl_task)

        try:
            result: Optional[CrawlEntry] = await crawl_task
        except asyncio.CancelledError:
            self.logger.info("Crawl interrupted")
            return 1

        print(render(result))

        if output:
            try:
                ResultWriter(output).write(result, self.monitor.get_summary())
            except ResultWriteError as e:
                self.logger.error(str(e))
                return 1

        self.logger.info("=== TREE CRAWLER FINISHED ===")
        return 0


def build_config(args: argparse.Namespace) -> Config:
    """Load the config file (if any) and apply command-line overrides."""
    config_path = Path(args.config) if args.config else Path('config.yaml')

    if config_path.exists():
        config = load_config(str(config_path))
    elif args.config:
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    else:
        config = ConfigManager().from_dict({})

    overrides = {
        'max_depth': args.depth,
        'max_concurrent_requests': args.max_concurrent,
        'max_queue_capacity': args.queue_capacity,
        'request_timeout': args.timeout,
        'max_duration': args.max_duration,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        config.crawler = replace(config.crawler, **overrides)
        # Re-validate with the overridden values
        config.crawler.to_settings()

    if args.log_level:
        config.logging.level = args.log_level

    return config


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recursive tree crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  webtree https://example.com                  # Crawl with default settings
  webtree https://example.com --depth 2        # Follow links two levels deep
  webtree https://example.com -o tree.json     # Also save the tree as JSON
  webtree https://example.com --config my.yaml # Use a custom config file
        """
    )

    parser.add_argument('url', help='URL to start crawling from')
    parser.add_argument('--config', help='Path to configuration file (default: config.yaml if present)')
    parser.add_argument('--depth', type=int, help='Maximum depth to crawl')
    parser.add_argument('--max-concurrent', type=int, help='Maximum concurrent requests')
    parser.add_argument('--queue-capacity', type=int, help='Maximum number of queued tasks')
    parser.add_argument('--timeout', type=float, help='Request timeout in seconds')
    parser.add_argument('--max-duration', type=float, help='Stop the crawl after this many seconds')
    parser.add_argument('-o', '--output', help='Write the result tree to this JSON file')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Log level')
    parser.add_argument('--version', action='version', version=f'webtree {__version__}')

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.logging)

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(args.url, config, args.output))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1
    except Exception as e:
        logging.getLogger(__name__).error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
