"""
Storage layer for the inverted index and visited markers.
"""

from .database import (
    DatabaseManager, StorageError, StorageBackend, RedisStorageBackend,
    FileStorageBackend, KeywordRecord, Posting
)
from .indexer import InvertedIndex, IndexResult
from .visited import VisitedFilter

__all__ = [
    'DatabaseManager', 'StorageError', 'StorageBackend', 'RedisStorageBackend',
    'FileStorageBackend', 'KeywordRecord', 'Posting',
    'InvertedIndex', 'IndexResult', 'VisitedFilter'
]
