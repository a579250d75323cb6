"""Redis connection and the staff directory cache."""

import json
from typing import Any, cast

import redis
import structlog

from gpms.config import settings

logger = structlog.get_logger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, creating it on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close and forget the Redis client."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """JSON cache on top of Redis.

    Redis is an accelerator only. Any Redis error is logged and reported as
    a miss (reads) or ``False``/``0`` (writes), and the caller falls back to
    the database.
    """

    # Keys deleted per round-trip when invalidating by pattern
    SCAN_BATCH = 500

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored at ``key``, or None."""
        try:
            raw = cast(str | None, self.redis.get(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        if not raw:
            return None

        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        UUIDs, dates and datetimes are written as strings; pydantic parses
        them back when the cached dict is turned into a response model.

        Args:
            key: Cache key
            value: JSON-compatible value
            ttl: Expiry in seconds, or None to keep until invalidated

        Returns:
            True if stored
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        """Drop a single key."""
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Drop every key matching a glob pattern, e.g. ``staff:<practice_id>:*``.

        Uses SCAN so large keyspaces are not blocked.

        Returns:
            Number of keys deleted
        """
        deleted = 0
        batch: list[str] = []
        try:
            for key in self.redis.scan_iter(match=pattern, count=self.SCAN_BATCH):
                batch.append(key)
                if len(batch) >= self.SCAN_BATCH:
                    deleted += cast(int, self.redis.delete(*batch))
                    batch = []
            if batch:
                deleted += cast(int, self.redis.delete(*batch))
        except redis.RedisError as e:
            logger.warning("cache_invalidate_failed", pattern=pattern, error=str(e))
        return deleted
