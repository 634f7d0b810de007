"""
Monitoring and metrics collection for the tree crawler.
"""

import time
import logging
from typing import Dict, Optional, Any

from prometheus_client import Counter, Gauge, CollectorRegistry, generate_latest
from prometheus_client import start_http_server


COUNTERS = {
    'pages_fetched_total': 'Total number of pages fetched',
    'fetch_errors_total': 'Total number of failed fetches',
    'links_discovered_total': 'Total number of raw links extracted',
    'links_admitted_total': 'Total number of links admitted to the crawl',
}

GAUGES = {
    'in_flight_tasks': 'Number of submitted tasks not yet completed',
    'queue_size': 'Number of tasks waiting in the work queue',
}


class MetricsCollector:
    """Collects crawler metrics in-process and mirrors them to Prometheus."""

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.values: Dict[str, float] = {}
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        # A private registry keeps runs (and tests) independent of the global one
        self.prometheus_registry = CollectorRegistry()
        self.prometheus_metrics: Dict[str, Any] = {}

        for name, description in COUNTERS.items():
            self.prometheus_metrics[name] = Counter(
                f'webtree_{name}', description, registry=self.prometheus_registry
            )
        for name, description in GAUGES.items():
            self.prometheus_metrics[name] = Gauge(
                f'webtree_{name}', description, registry=self.prometheus_registry
            )

    def start_server(self):
        """Start the Prometheus metrics HTTP server."""
        if not self.enable_prometheus:
            return

        start_http_server(self.prometheus_port, registry=self.prometheus_registry)
        self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")

    def increment_counter(self, name: str, amount: float = 1):
        """Increment a counter metric."""
        self.values[name] = self.values.get(name, 0) + amount
        metric = self.prometheus_metrics.get(name)
        if metric is not None:
            metric.inc(amount)

    def set_gauge(self, name: str, value: float):
        """Set a gauge metric value."""
        self.values[name] = value
        metric = self.prometheus_metrics.get(name)
        if metric is not None:
            metric.set(value)

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics."""
        return dict(self.values)

    def export_text(self) -> bytes:
        """Render the registry in the Prometheus exposition format."""
        return generate_latest(self.prometheus_registry)


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: Optional[MetricsCollector] = None):
        self.metrics = metrics_collector or MetricsCollector()
        self.start_time = time.time()

    def record_page_fetched(self, url: str):
        self.metrics.increment_counter('pages_fetched_total')

    def record_fetch_error(self, url: str):
        self.metrics.increment_counter('fetch_errors_total')

    def record_links(self, discovered: int, admitted: int):
        self.metrics.increment_counter('links_discovered_total', discovered)
        self.metrics.increment_counter('links_admitted_total', admitted)

    def update_queue(self, in_flight: int, queue_size: int):
        self.metrics.set_gauge('in_flight_tasks', in_flight)
        self.metrics.set_gauge('queue_size', queue_size)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        current_values = self.metrics.get_current_values()
        runtime = time.time() - self.start_time

        return {
            'runtime_seconds': runtime,
            'metrics': current_values,
            'rates': {
                'pages_per_second': current_values.get('pages_fetched_total', 0) / runtime if runtime > 0 else 0,
            }
        }
