"""
Crawl frontier: the FIFO work queue of crawl tasks.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(frozen=True)
class CrawlTask:
    """A single address to crawl, tagged with its seed and hop count."""
    url: str
    root_seed: str
    depth: int = 0

    def __post_init__(self):
        if self.depth < 0:
            raise ValueError(f"depth must be non-negative, got {self.depth}")

    def child(self, url: str) -> 'CrawlTask':
        """Create the task for a link found on this page."""
        return CrawlTask(url=url, root_seed=self.root_seed, depth=self.depth + 1)

    @classmethod
    def seed(cls, url: str) -> 'CrawlTask':
        return cls(url=url, root_seed=url, depth=0)


class Frontier:
    """
    Insertion-ordered queue of crawl tasks shared by all workers.

    Pop order is pure FIFO, so every task at depth d is handed out before
    any task at depth d+1 that was discovered later.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._queue: asyncio.Queue = asyncio.Queue()
        self.stats = {
            'pushed': 0,
            'popped': 0
        }

    def push(self, task: CrawlTask):
        """Append a task to the back of the queue."""
        self._queue.put_nowait(task)
        self.stats['pushed'] += 1
        self.logger.debug(f"Pushed {task.url} (depth {task.depth})")

    def push_many(self, tasks: List[CrawlTask]) -> int:
        for task in tasks:
            self.push(task)
        return len(tasks)

    def pop(self) -> Optional[CrawlTask]:
        """Remove and return the earliest task, or None when empty."""
        try:
            task = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        self.stats['popped'] += 1
        return task

    async def get(self) -> CrawlTask:
        """Wait for the next task. Each result must be paired with task_done()."""
        task = await self._queue.get()
        self.stats['popped'] += 1
        return task

    def task_done(self):
        self._queue.task_done()

    async def join(self):
        """Block until every pushed task has been marked done."""
        await self._queue.join()

    def size(self) -> int:
        return self._queue.qsize()

    def is_empty(self) -> bool:
        return self._queue.empty()

    def get_stats(self) -> Dict[str, int]:
        return {**self.stats, 'queued': self.size()}


def load_seed_file(path: str) -> List[CrawlTask]:
    """
    Read a newline-delimited seed file into depth-0 tasks.

    Blank lines are ignored. A missing file raises FileNotFoundError.
    """
    seed_path = Path(path)
    if not seed_path.exists():
        raise FileNotFoundError(f"Seed file not found: {seed_path}")

    tasks = []
    with open(seed_path, 'r', encoding='utf-8') as f:
        for line in f:
            url = line.strip()
            if url:
                tasks.append(CrawlTask.seed(url))
    return tasks
