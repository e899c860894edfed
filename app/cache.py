import json
from typing import Any, Optional
import redis
from app import config
from app.logger import get_logger

logger = get_logger(__name__)


class SoftCache:
    """Read-through helper over an optional Redis client.

    Every failure, including a missing client, behaves like a cache miss; the
    caller always falls back to the database.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: int = 300):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def get_json(self, key: str) -> Optional[Any]:
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {key}: {str(e)}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    def set_json(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if self.client is None:
            return
        try:
            self.client.set(key, json.dumps(value, default=str), ex=ttl_seconds or self.ttl_seconds)
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {key}: {str(e)}")

    def delete(self, *keys: str) -> None:
        if self.client is None or not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {keys}: {str(e)}")


def build_cache() -> SoftCache:
    if not config.REDIS_URL:
        logger.info("REDIS_URL not set, running without cache")
        return SoftCache(None, config.CACHE_TTL_SECONDS)
    client = redis.from_url(
        config.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=1,
        socket_timeout=1,
    )
    return SoftCache(client, config.CACHE_TTL_SECONDS)


cache = build_cache()
