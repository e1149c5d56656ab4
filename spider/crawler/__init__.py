"""
Web crawler core components.
"""

from .frontier import Frontier, CrawlTask, load_seed_file
from .fetcher import WebFetcher, FetchResult
from .parser import ContentParser, ParsedPage, extract_title, resolve_link
from .tokenizer import Tokenizer, tokenize
from .context import CrawlContext, create_context, close_context
from .scheduler import CrawlerScheduler, CrawlStats, TaskState

__all__ = [
    'Frontier', 'CrawlTask', 'load_seed_file',
    'WebFetcher', 'FetchResult',
    'ContentParser', 'ParsedPage', 'extract_title', 'resolve_link',
    'Tokenizer', 'tokenize',
    'CrawlContext', 'create_context', 'close_context',
    'CrawlerScheduler', 'CrawlStats', 'TaskState'
]
