"""
Inverted index updater.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .database import DatabaseManager, KeywordRecord, StorageError


@dataclass
class IndexResult:
    """Outcome of indexing one page."""
    address: str
    keywords_updated: int = 0
    occurrences: int = 0
    failed_keywords: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_keywords


class InvertedIndex:
    """Maps keywords to postings through the store's atomic increment."""

    def __init__(self, database: DatabaseManager):
        self.database = database
        self.logger = logging.getLogger(__name__)

    async def record_occurrence(self, keyword: str, address: str, count: int = 1) -> int:
        """
        Count occurrences of keyword on address.

        Creates the keyword record or the posting on first sighting,
        otherwise increments the posting. Returns the new frequency.
        """
        return await self.database.increment_posting(keyword, address, count)

    async def index_page(self, address: str, tokens: Iterable[str]) -> IndexResult:
        """
        Record every token of a page.

        Each distinct keyword is one independent upsert; a failure on one
        keyword is logged and the remaining keywords still go through.
        """
        result = IndexResult(address=address)

        for keyword, count in Counter(tokens).items():
            try:
                await self.record_occurrence(keyword, address, count)
            except StorageError as e:
                self.logger.error(f"Failed to index {keyword!r} for {address}: {e}")
                result.failed_keywords.append(keyword)
                continue
            result.keywords_updated += 1
            result.occurrences += count

        return result

    async def get_record(self, keyword: str) -> Optional[KeywordRecord]:
        return await self.database.get_keyword(keyword)
