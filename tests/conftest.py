"""Shared fixtures for the spider test suite."""

import fakeredis.aioredis
import pytest

from spider.storage.database import DatabaseManager, FileStorageBackend, RedisStorageBackend
from spider.utils.config import DatabaseConfig, RedisConfig


def make_backend(kind, tmp_path):
    if kind == 'file':
        return FileStorageBackend(str(tmp_path / 'index.json'))
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    return RedisStorageBackend(RedisConfig(key_prefix='test'), client=client)


@pytest.fixture
async def file_database(tmp_path):
    database = DatabaseManager(DatabaseConfig(type='file'), backend=make_backend('file', tmp_path))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture(params=['file', 'redis'])
async def database(request, tmp_path):
    """Runs the test once against each store backend."""
    database = DatabaseManager(
        DatabaseConfig(type=request.param),
        backend=make_backend(request.param, tmp_path)
    )
    await database.initialize()
    yield database
    await database.close()
