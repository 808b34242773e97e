"""Redis cache client.

Keys are plain strings with a TTL. Prefix deletion walks the keyspace with
SCAN so it never blocks the server the way KEYS would.
"""

import re

import logfire
import redis.asyncio as redis

from commentable.domain.error import CacheUnavailableError
from commentable.domain.service.cache_service import CacheClient

# Characters with a meaning in SCAN MATCH glob patterns
_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")

DELETE_BATCH_SIZE = 500


def glob_escape(value: str) -> str:
    """Escape a literal for use in a Redis MATCH pattern."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class RedisCacheClient(CacheClient):
    """Cache client backed by Redis."""

    def __init__(self, client: redis.Redis) -> None:
        """Initialize Redis cache client.

        Args:
            client: Connected Redis client (decode_responses=True)
        """
        self.client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> "RedisCacheClient":
        """Create a client with its own connection pool.

        Args:
            url: Redis URL (redis://host:port/db)
            socket_timeout: Socket and connect timeout in seconds

        Returns:
            Cache client
        """
        return cls(
            redis.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
                decode_responses=True,
            )
        )

    async def get(self, key: str) -> str | None:
        try:
            return await self.client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis GET failed: {e}") from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self.client.set(key, value, ex=ttl)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis SET failed: {e}") from e

    async def incr(self, key: str) -> int:
        try:
            return await self.client.incr(key)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis INCR failed: {e}") from e

    async def delete_by_prefix(self, prefix: str) -> int:
        pattern = f"{glob_escape(prefix)}*"
        deleted = 0
        try:
            batch: list[str] = []
            async for key in self.client.scan_iter(match=pattern, count=100):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.client.delete(*batch)
        except redis.RedisError as e:
            raise CacheUnavailableError(f"Redis prefix delete failed: {e}") from e
        return deleted

    async def ping(self) -> bool:
        """Check the connection.

        Returns:
            True if Redis answered, False otherwise
        """
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logfire.warn("Redis ping failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        await self.client.aclose()
