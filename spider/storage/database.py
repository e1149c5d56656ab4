"""
Document store for the inverted index and visited markers.
Supports both Redis and file-based storage.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Dict, List, Any
from dataclasses import dataclass, field

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..utils.config import DatabaseConfig, RedisConfig


class StorageError(Exception):
    """Raised when a store read or write fails."""
    pass


@dataclass
class Posting:
    """One page's occurrence count for a keyword."""
    address: str
    frequency: int


@dataclass
class KeywordRecord:
    """A keyword and its postings, in first-seen order."""
    keyword: str
    postings: List[Posting] = field(default_factory=list)

    def frequency_for(self, address: str) -> int:
        for posting in self.postings:
            if posting.address == address:
                return posting.frequency
        return 0

    def to_dict(self) -> dict:
        return {
            'keyword': self.keyword,
            'url': [{'address': p.address, 'freq': p.frequency} for p in self.postings]
        }


class StorageBackend:
    """
    Abstract base class for storage backends.

    Every mutation is a single atomic store primitive; callers never
    read a record and write it back.
    """

    async def initialize(self):
        """Initialize the storage backend."""
        raise NotImplementedError

    async def is_visited(self, address: str) -> bool:
        """Check whether a visited marker exists for address."""
        raise NotImplementedError

    async def claim(self, address: str) -> bool:
        """Atomically claim address for indexing. True only for the first caller."""
        raise NotImplementedError

    async def mark_visited(self, address: str):
        """Insert the visited marker for address."""
        raise NotImplementedError

    async def increment_posting(self, keyword: str, address: str, amount: int = 1) -> int:
        """
        Add amount to the posting for address under keyword, creating the
        keyword record or the posting as needed. Returns the new frequency.
        """
        raise NotImplementedError

    async def get_keyword(self, keyword: str) -> Optional[KeywordRecord]:
        """Fetch a keyword record by key."""
        raise NotImplementedError

    async def get_stats(self) -> Dict[str, Any]:
        """Get storage statistics."""
        raise NotImplementedError

    async def close(self):
        """Close storage connections."""
        raise NotImplementedError


class RedisStorageBackend(StorageBackend):
    """
    Redis storage backend.

    Layout under the key prefix:
        {prefix}:visited              set of indexed addresses
        {prefix}:claimed              set of addresses claimed for indexing
        {prefix}:keywords             set of known keywords
        {prefix}:kw:{keyword}:freq    hash address -> frequency
        {prefix}:kw:{keyword}:order   list of addresses in first-seen order
    """

    def __init__(self, config: RedisConfig, client: Optional[redis.Redis] = None):
        self.config = config
        self.client = client
        self._owns_client = client is None
        self.prefix = config.key_prefix
        self.logger = logging.getLogger(__name__)

        self.visited_key = f"{self.prefix}:visited"
        self.claimed_key = f"{self.prefix}:claimed"
        self.keywords_key = f"{self.prefix}:keywords"

    def _freq_key(self, keyword: str) -> str:
        return f"{self.prefix}:kw:{keyword}:freq"

    def _order_key(self, keyword: str) -> str:
        return f"{self.prefix}:kw:{keyword}:order"

    async def initialize(self):
        """Connect to Redis and check the connection."""
        try:
            if self.client is None:
                self.client = redis.Redis(
                    host=self.config.host,
                    port=self.config.port,
                    db=self.config.db,
                    password=self.config.password,
                    decode_responses=True
                )
            await self.client.ping()
            self.logger.info(f"Redis storage initialized with prefix: {self.prefix}")
        except RedisError as e:
            raise StorageError(f"Failed to initialize Redis: {e}")

    async def is_visited(self, address: str) -> bool:
        try:
            return bool(await self.client.sismember(self.visited_key, address))
        except RedisError as e:
            raise StorageError(f"Visited check failed for {address}: {e}")

    async def claim(self, address: str) -> bool:
        try:
            return await self.client.sadd(self.claimed_key, address) == 1
        except RedisError as e:
            raise StorageError(f"Claim failed for {address}: {e}")

    async def mark_visited(self, address: str):
        try:
            await self.client.sadd(self.visited_key, address)
        except RedisError as e:
            raise StorageError(f"Could not mark {address} visited: {e}")

    async def increment_posting(self, keyword: str, address: str, amount: int = 1) -> int:
        if amount < 1:
            raise ValueError("amount must be positive")
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.hincrby(self._freq_key(keyword), address, amount)
                pipe.sadd(self.keywords_key, keyword)
                frequency, _ = await pipe.execute()

            # HINCRBY is atomic, so exactly one caller sees the posting start at amount
            if frequency == amount:
                await self.client.rpush(self._order_key(keyword), address)

            return int(frequency)
        except RedisError as e:
            raise StorageError(f"Increment failed for {keyword!r} on {address}: {e}")

    async def get_keyword(self, keyword: str) -> Optional[KeywordRecord]:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.hgetall(self._freq_key(keyword))
                pipe.lrange(self._order_key(keyword), 0, -1)
                frequencies, order = await pipe.execute()
        except RedisError as e:
            raise StorageError(f"Lookup failed for {keyword!r}: {e}")

        if not frequencies:
            return None

        # An increment may land between HINCRBY and RPUSH; such postings go last
        ordered = set(order)
        addresses = [a for a in order if a in frequencies]
        addresses += [a for a in frequencies if a not in ordered]

        return KeywordRecord(
            keyword=keyword,
            postings=[Posting(address=a, frequency=int(frequencies[a])) for a in addresses]
        )

    async def get_stats(self) -> Dict[str, Any]:
        try:
            return {
                'keywords': await self.client.scard(self.keywords_key),
                'visited': await self.client.scard(self.visited_key),
                'claimed': await self.client.scard(self.claimed_key)
            }
        except RedisError as e:
            self.logger.error(f"Error getting stats: {e}")
            return {}

    async def close(self):
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")


class FileStorageBackend(StorageBackend):
    """
    File-based storage backend for development and single-process runs.

    The index lives in memory and is snapshotted to a JSON file on close.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)
        self._lock = asyncio.Lock()
        self.visited: set = set()
        self.claimed: set = set()
        # keyword -> {address: frequency}; dicts keep first-seen order
        self.keywords: Dict[str, Dict[str, int]] = {}

    async def initialize(self):
        """Load an existing snapshot if present."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            if self.path.exists():
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self.visited = set(data.get('visited', []))
                # Claimed but never marked visited stays claimed, as with redis
                self.claimed = set(data.get('claimed', [])) | self.visited
                for record in data.get('keywords', []):
                    self.keywords[record['keyword']] = {
                        p['address']: p['freq'] for p in record['url']
                    }

            self.logger.info(f"File storage initialized at {self.path}")

        except (OSError, ValueError, KeyError) as e:
            raise StorageError(f"Failed to initialize file storage: {e}")

    async def is_visited(self, address: str) -> bool:
        return address in self.visited

    async def claim(self, address: str) -> bool:
        async with self._lock:
            if address in self.claimed:
                return False
            self.claimed.add(address)
            return True

    async def mark_visited(self, address: str):
        async with self._lock:
            self.visited.add(address)

    async def increment_posting(self, keyword: str, address: str, amount: int = 1) -> int:
        if amount < 1:
            raise ValueError("amount must be positive")
        async with self._lock:
            postings = self.keywords.setdefault(keyword, {})
            postings[address] = postings.get(address, 0) + amount
            return postings[address]

    async def get_keyword(self, keyword: str) -> Optional[KeywordRecord]:
        postings = self.keywords.get(keyword)
        if not postings:
            return None
        return KeywordRecord(
            keyword=keyword,
            postings=[Posting(address=a, frequency=f) for a, f in postings.items()]
        )

    async def get_stats(self) -> Dict[str, Any]:
        return {
            'keywords': len(self.keywords),
            'visited': len(self.visited),
            'claimed': len(self.claimed)
        }

    async def save(self):
        """Write the current index to the snapshot file."""
        async with self._lock:
            data = {
                'visited': sorted(self.visited),
                'claimed': sorted(self.claimed),
                'keywords': [
                    KeywordRecord(
                        keyword=keyword,
                        postings=[Posting(address=a, frequency=f) for a, f in postings.items()]
                    ).to_dict()
                    for keyword, postings in self.keywords.items()
                ]
            }
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise StorageError(f"Could not write index to {self.path}: {e}")

    async def close(self):
        await self.save()
        self.logger.info(f"Index written to {self.path}")


class DatabaseManager:
    """Main database manager that handles different storage backends."""

    def __init__(self, config: DatabaseConfig, redis_config: Optional[RedisConfig] = None,
                 backend: Optional[StorageBackend] = None):
        self.config = config
        self.redis_config = redis_config or RedisConfig()
        self.backend: Optional[StorageBackend] = backend
        self.logger = logging.getLogger(__name__)

    async def initialize(self):
        """Initialize the appropriate storage backend."""
        if self.backend is None:
            backend_type = self.config.type.lower()

            if backend_type == 'redis':
                self.backend = RedisStorageBackend(self.redis_config)
            elif backend_type == 'file':
                self.backend = FileStorageBackend(self.config.file['path'])
            else:
                raise StorageError(f"Unknown database type: {backend_type}")

        await self.backend.initialize()
        self.logger.info(f"Database manager initialized with {type(self.backend).__name__}")

    def _require_backend(self) -> StorageBackend:
        if not self.backend:
            raise StorageError("Database not initialized")
        return self.backend

    async def is_visited(self, address: str) -> bool:
        return await self._require_backend().is_visited(address)

    async def claim(self, address: str) -> bool:
        return await self._require_backend().claim(address)

    async def mark_visited(self, address: str):
        await self._require_backend().mark_visited(address)

    async def increment_posting(self, keyword: str, address: str, amount: int = 1) -> int:
        return await self._require_backend().increment_posting(keyword, address, amount)

    async def get_keyword(self, keyword: str) -> Optional[KeywordRecord]:
        return await self._require_backend().get_keyword(keyword)

    async def get_stats(self) -> Dict[str, Any]:
        return await self._require_backend().get_stats()

    async def close(self):
        """Close database connections."""
        if self.backend:
            await self.backend.close()
            self.logger.info("Database connections closed")
