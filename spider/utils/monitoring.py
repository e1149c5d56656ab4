"""
Monitoring and metrics collection for the crawler.
"""

import time
import logging
from typing import Dict, Any

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
from prometheus_client import start_http_server


class CrawlerMonitor:
    """Prometheus metrics for one crawl, kept in a private registry."""

    def __init__(self, enable_server: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.enable_server = enable_server
        self.prometheus_port = prometheus_port
        self.start_time = time.time()
        self.registry = CollectorRegistry()

        self.pages_fetched = Counter(
            'spider_pages_fetched_total',
            'Pages retrieved successfully',
            registry=self.registry
        )
        self.fetch_failures = Counter(
            'spider_fetch_failures_total',
            'Pages that could not be retrieved',
            registry=self.registry
        )
        self.pages_indexed = Counter(
            'spider_pages_indexed_total',
            'Pages whose keywords were added to the index',
            registry=self.registry
        )
        self.pages_skipped = Counter(
            'spider_pages_skipped_total',
            'Pages skipped because they were already visited',
            registry=self.registry
        )
        self.keyword_updates = Counter(
            'spider_keyword_updates_total',
            'Posting upserts committed to the store',
            registry=self.registry
        )
        self.errors = Counter(
            'spider_errors_total',
            'Crawl errors by type',
            ['error_type'],
            registry=self.registry
        )
        self.fetch_seconds = Histogram(
            'spider_fetch_seconds',
            'Time spent fetching a page',
            registry=self.registry
        )
        self.frontier_size = Gauge(
            'spider_frontier_size',
            'Tasks waiting in the frontier',
            registry=self.registry
        )

    def start_server(self):
        """Start the Prometheus metrics HTTP server if enabled."""
        if not self.enable_server:
            return
        try:
            start_http_server(self.prometheus_port, registry=self.registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def record_fetch(self, ok: bool, fetch_time: float):
        self.fetch_seconds.observe(fetch_time)
        if ok:
            self.pages_fetched.inc()
        else:
            self.fetch_failures.inc()

    def record_indexed(self, keywords_updated: int):
        self.pages_indexed.inc()
        self.keyword_updates.inc(keywords_updated)

    def record_skipped(self):
        self.pages_skipped.inc()

    def record_error(self, error_type: str):
        self.errors.labels(error_type=error_type).inc()

    def update_frontier_size(self, size: int):
        self.frontier_size.set(size)

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text format."""
        return generate_latest(self.registry)

    def get_summary(self) -> Dict[str, Any]:
        runtime = time.time() - self.start_time
        return {
            'runtime_seconds': runtime,
            'pages_fetched': self._total('spider_pages_fetched_total'),
            'pages_indexed': self._total('spider_pages_indexed_total'),
            'pages_skipped': self._total('spider_pages_skipped_total'),
            'fetch_failures': self._total('spider_fetch_failures_total'),
            'keyword_updates': self._total('spider_keyword_updates_total')
        }

    def _total(self, sample_name: str) -> float:
        return self.registry.get_sample_value(sample_name) or 0.0
