"""Test doubles shared by the scheduler tests."""

from spider.crawler.context import CrawlContext
from spider.crawler.fetcher import FetchResult
from spider.crawler.parser import extract_title
from spider.utils.config import Config, CrawlerConfig


class FakeFetcher:
    """Serves pages from a dict; any other address fails like an unreachable host."""

    def __init__(self, pages):
        self.pages = pages
        self.requested = []

    async def fetch(self, url):
        self.requested.append(url)
        if url not in self.pages:
            return FetchResult(url=url, status_code=0, error="Client error: unreachable")
        content = self.pages[url]
        return FetchResult(url=url, status_code=200, content=content, title=extract_title(content))

    async def close(self):
        pass


def make_context(database, fetcher, max_depth=1, max_workers=2, deadline=None):
    config = Config(crawler=CrawlerConfig(
        seed_urls=['https://a.test'],
        max_depth=max_depth,
        max_workers=max_workers
    ))
    return CrawlContext(config=config, database=database, fetcher=fetcher, deadline=deadline)
