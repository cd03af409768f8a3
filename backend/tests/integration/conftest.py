"""Integration fixtures against a real Redis server.

Point TEST_REDIS_URL at a disposable database: it is flushed before every test.
Tests are skipped when the server cannot be reached.
"""

import os

import pytest
import redis


@pytest.fixture(scope="session")
def redis_server():
    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    client = redis.Redis.from_url(
        test_redis_url,
        decode_responses=True,
        socket_connect_timeout=1,
        socket_timeout=1,
    )
    try:
        client.ping()
    except redis.RedisError:
        pytest.skip(f"Redis not reachable at {test_redis_url}")
    yield client
    client.close()


@pytest.fixture
def redis_client(redis_server):
    """Redis client on an empty database."""
    redis_server.flushdb()
    yield redis_server
    redis_server.flushdb()
