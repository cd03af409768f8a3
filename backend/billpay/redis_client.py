"""Redis connection management."""

import logging

import redis

from billpay.config import Settings

logger = logging.getLogger(__name__)


def create_redis(settings: Settings) -> redis.Redis | None:
    """Create a Redis client from settings, or None when Redis is not configured.

    The client connects lazily; every command is bounded by the socket timeouts.
    """
    if not settings.redis_url:
        return None

    client = redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
        health_check_interval=30,
    )
    logger.info("Redis client configured")
    return client


def close_redis(client: redis.Redis | None) -> None:
    """Close a Redis client created by create_redis."""
    if client is None:
        return
    try:
        client.close()
    except redis.RedisError:
        logger.warning("Error while closing Redis connection", exc_info=True)
