from typing import List, Optional

import redis
import structlog

logger = structlog.get_logger()


class RedisStorage:
    """Durable cache tier backed by a Redis server."""

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None, scan_count: int = 100):
        """Initialize Redis storage with connection URL or an existing client."""
        self.redis_url = redis_url
        self.scan_count = scan_count
        self.redis: Optional[redis.Redis] = client

    def connect(self) -> redis.Redis:
        """Establish connection to Redis."""
        if self.redis is None:
            try:
                self.redis = redis.Redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                self.redis.ping()
                logger.info("redis_connection_established")
            except Exception as e:
                self.redis = None
                logger.error("redis_connection_failed", error=str(e))
                raise
        return self.redis

    def close(self) -> None:
        """Close Redis connection."""
        if self.redis is not None:
            self.redis.close()
            self.redis = None
            logger.info("redis_connection_closed")

    def get_item(self, key: str) -> Optional[str]:
        return self.connect().get(key)

    def set_item(self, key: str, value: str) -> None:
        self.connect().set(key, value)

    def remove_item(self, key: str) -> None:
        self.connect().delete(key)

    def keys(self) -> List[str]:
        # SCAN keeps the server responsive on large keyspaces
        return list(self.connect().scan_iter(match="*", count=self.scan_count))
