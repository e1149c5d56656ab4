"""
Crawl context: the handles and stop signal shared by every component of a run.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from .fetcher import WebFetcher
from .parser import ContentParser
from .tokenizer import Tokenizer
from ..storage.database import DatabaseManager
from ..utils.config import Config
from ..utils.monitoring import CrawlerMonitor


@dataclass(frozen=True)
class CrawlContext:
    """
    Created once at startup and passed to the scheduler; never reassigned.

    ``deadline`` is a time.monotonic() value, or None for no time limit.
    """
    config: Config
    database: DatabaseManager
    fetcher: WebFetcher
    parser: ContentParser = field(default_factory=ContentParser)
    tokenizer: Tokenizer = field(default_factory=Tokenizer)
    monitor: CrawlerMonitor = field(default_factory=CrawlerMonitor)
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    deadline: Optional[float] = None

    @property
    def deadline_passed(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set() or self.deadline_passed

    def time_left(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def stop(self):
        self.stop_event.set()


async def create_context(config: Config) -> CrawlContext:
    """Connect the store and open the HTTP session for a crawl run."""
    logger = logging.getLogger(__name__)

    database = DatabaseManager(config.database, config.redis)
    await database.initialize()

    fetcher = WebFetcher(
        user_agent=config.crawler.user_agent,
        request_timeout=config.crawler.request_timeout,
        max_concurrent_requests=config.crawler.max_concurrent_requests,
        max_content_bytes=config.crawler.max_content_bytes
    )
    try:
        await fetcher.start()

        monitor = CrawlerMonitor(
            enable_server=config.monitoring.metrics_enabled,
            prometheus_port=config.monitoring.prometheus_port
        )
        monitor.start_server()
    except Exception:
        logger.error("Crawl context setup failed, releasing resources")
        await fetcher.close()
        await database.close()
        raise

    deadline = None
    if config.crawler.max_duration:
        deadline = time.monotonic() + config.crawler.max_duration

    logger.info("Crawl context created")
    return CrawlContext(
        config=config,
        database=database,
        fetcher=fetcher,
        tokenizer=Tokenizer(fold_case=config.tokenizer.fold_case),
        monitor=monitor,
        deadline=deadline
    )


async def close_context(context: CrawlContext):
    """Release the HTTP session and store connection."""
    await context.fetcher.close()
    await context.database.close()
