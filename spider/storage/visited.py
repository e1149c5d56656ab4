"""
Visited filter: decides whether a fetched page still needs indexing.
"""

import logging

from .database import DatabaseManager


class VisitedFilter:
    """
    Gates indexing so each address contributes to the index once.

    A page is claimed atomically before it is indexed and marked visited
    only after its keywords are committed, so a visited marker always
    means the page's postings are already in the store.
    """

    def __init__(self, database: DatabaseManager):
        self.database = database
        self.logger = logging.getLogger(__name__)

    async def try_claim(self, address: str) -> bool:
        """
        Returns True if the address was already visited (or claimed by
        another worker) and indexing should be skipped.
        """
        if await self.database.is_visited(address):
            return True
        return not await self.database.claim(address)

    async def mark_visited(self, address: str):
        await self.database.mark_visited(address)
        self.logger.debug(f"Marked visited: {address}")

    async def is_visited(self, address: str) -> bool:
        return await self.database.is_visited(address)
