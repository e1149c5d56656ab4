"""
Crawler scheduler that runs the worker pool and the per-task crawl-and-index steps.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import List, Optional
from dataclasses import dataclass

from .context import CrawlContext
from .frontier import CrawlTask, Frontier
from ..storage.database import StorageError
from ..storage.indexer import InvertedIndex
from ..storage.visited import VisitedFilter
from ..utils.logger import get_crawler_logger


class TaskState(Enum):
    """Terminal outcome of one crawl task."""
    FETCH_FAILED = "fetch-failed"
    SKIPPED = "skipped"
    INDEXED = "indexed"
    BEYOND_DEPTH = "beyond-depth"


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    pages_fetched: int = 0
    fetch_failures: int = 0
    pages_indexed: int = 0
    pages_skipped: int = 0
    beyond_depth: int = 0
    keyword_updates: int = 0
    store_errors: int = 0
    errors: int = 0
    end_time: Optional[float] = None

    @property
    def elapsed_time(self) -> float:
        return (self.end_time or time.time()) - self.start_time


class CrawlerScheduler:
    """
    Runs a bounded pool of workers over a shared FIFO frontier.

    Each task moves through queued -> fetching -> fetch-failed, or
    fetching -> parsed -> indexed | skipped. Depth is checked when a task is
    dequeued: a task deeper than max_depth is finished without a fetch.
    """

    def __init__(self, context: CrawlContext):
        self.context = context
        self.config = context.config
        self.logger = logging.getLogger(__name__)

        self.frontier = Frontier()
        self.visited = VisitedFilter(context.database)
        self.index = InvertedIndex(context.database)

        self.max_depth = self.config.crawler.max_depth
        self.stats = CrawlStats(start_time=time.time())
        self.workers: List[asyncio.Task] = []

    def add_seeds(self, seeds: List[CrawlTask]) -> int:
        added = self.frontier.push_many(seeds)
        self.logger.info(f"Added {added} seed URLs to frontier")
        return added

    async def run(self, seeds: Optional[List[CrawlTask]] = None) -> CrawlStats:
        """
        Crawl until the frontier drains, stop() is called or the deadline passes.

        Returns the final statistics.
        """
        self.stats = CrawlStats(start_time=time.time())
        if seeds:
            self.add_seeds(seeds)

        num_workers = self.config.crawler.max_workers
        self.workers = [
            asyncio.create_task(self._worker(f"worker-{i}"))
            for i in range(num_workers)
        ]
        self.logger.info(f"Started crawling with {num_workers} workers")

        drained = asyncio.create_task(self.frontier.join())
        stop_requested = asyncio.create_task(self.context.stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                [drained, stop_requested],
                timeout=self.context.time_left(),
                return_when=asyncio.FIRST_COMPLETED
            )
            if drained not in done:
                self.logger.info("Stopping before the frontier drained")
                self.context.stop()
        finally:
            for waiter in (drained, stop_requested):
                waiter.cancel()
            await self._cleanup_workers()

        self.stats.end_time = time.time()
        self._log_final_stats()
        return self.stats

    def stop(self):
        """Ask the workers to stop; in-flight fetches are abandoned."""
        self.logger.info("Stopping crawler...")
        self.context.stop()

    async def _worker(self, worker_id: str):
        """Worker coroutine that processes tasks from the frontier."""
        logger = get_crawler_logger(__name__, worker=worker_id)
        logger.debug("Worker started")

        while True:
            task = await self.frontier.get()
            try:
                if self.context.stopped:
                    continue
                state = await self.process_task(task, logger)
                logger.debug(f"{task.url} -> {state.value}")
            except StorageError as e:
                logger.error(f"Store error processing {task.url}: {e}")
                self.stats.store_errors += 1
                self.context.monitor.record_error('store')
            except Exception as e:
                logger.error(f"Error processing {task.url}: {e}", exc_info=True)
                self.stats.errors += 1
                self.context.monitor.record_error('unexpected')
            finally:
                self.frontier.task_done()
                self.context.monitor.update_frontier_size(self.frontier.size())

    async def process_task(self, task: CrawlTask, logger=None) -> TaskState:
        """Run one task through fetch, link discovery and indexing."""
        logger = logger or self.logger

        if task.depth > self.max_depth:
            self.stats.beyond_depth += 1
            return TaskState.BEYOND_DEPTH

        result = await self.context.fetcher.fetch(task.url)
        self.context.monitor.record_fetch(result.ok, result.fetch_time)
        if not result.ok:
            logger.warning(f"Failed to fetch {task.url}: {result.error}")
            self.stats.fetch_failures += 1
            return TaskState.FETCH_FAILED

        self.stats.pages_fetched += 1
        logger.info(f"{task.url} {result.title or ''}".rstrip())

        page = self.context.parser.parse(result.content, task)

        # Children are queued whether or not this page gets indexed
        if not self.context.stopped:
            self.frontier.push_many(page.links)

        if await self.visited.try_claim(task.url):
            self.stats.pages_skipped += 1
            self.context.monitor.record_skipped()
            return TaskState.SKIPPED

        tokens = self.context.tokenizer.tokenize(page.text)
        index_result = await self.index.index_page(task.url, tokens)
        self.stats.keyword_updates += index_result.keywords_updated
        if not index_result.complete:
            self.stats.store_errors += len(index_result.failed_keywords)
            self.context.monitor.record_error('store')

        await self.visited.mark_visited(task.url)

        self.stats.pages_indexed += 1
        self.context.monitor.record_indexed(index_result.keywords_updated)
        return TaskState.INDEXED

    async def _cleanup_workers(self):
        """Cancel and cleanup worker tasks."""
        for worker in self.workers:
            if not worker.done():
                worker.cancel()
        await asyncio.gather(*self.workers, return_exceptions=True)
        self.workers.clear()

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages fetched: {self.stats.pages_fetched}")
        self.logger.info(f"Pages indexed: {self.stats.pages_indexed}")
        self.logger.info(f"Already visited: {self.stats.pages_skipped}")
        self.logger.info(f"Fetch failures: {self.stats.fetch_failures}")
        self.logger.info(f"Beyond max depth: {self.stats.beyond_depth}")
        self.logger.info(f"Keyword updates: {self.stats.keyword_updates}")
        self.logger.info(f"Store errors: {self.stats.store_errors}")
        self.logger.info(f"Tasks left in frontier: {self.frontier.size()}")
        self.logger.info(f"Crawling took {self.stats.elapsed_time:.2f}s")
