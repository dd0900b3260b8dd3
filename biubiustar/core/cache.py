"""Redis client construction and a small JSON cache wrapper."""
import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def create_redis(url: str, password: str | None = None) -> redis.Redis:
    """Build the shared client. Connections are opened lazily by the pool."""
    return redis.from_url(
        url,
        password=password or None,
        encoding="utf-8",
        decode_responses=True,
    )


async def close_redis(client: redis.Redis | None) -> None:
    if client is not None:
        await client.aclose()


class Cache:
    """Advisory JSON cache. Errors are logged and treated as cache misses."""

    def __init__(self, client: redis.Redis):
        self.client = client

    async def get(self, key: str) -> Any | None:
        try:
            cached = await self.client.get(key)
        except RedisError as exc:
            logger.error("cache get failed for %s: %s", key, exc)
            return None
        if cached is None:
            return None
        return json.loads(cached)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            serialized = json.dumps(value, default=str)
            if ttl:
                await self.client.setex(key, ttl, serialized)
            else:
                await self.client.set(key, serialized)
        except RedisError as exc:
            logger.error("cache set failed for %s: %s", key, exc)

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except RedisError as exc:
            logger.error("cache delete failed for %s: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        try:
            keys = [key async for key in self.client.scan_iter(match=pattern)]
            if keys:
                await self.client.delete(*keys)
        except RedisError as exc:
            logger.error("cache delete_pattern failed for %s: %s", pattern, exc)

    async def exists(self, key: str) -> bool:
        try:
            return await self.client.exists(key) == 1
        except RedisError as exc:
            logger.error("cache exists failed for %s: %s", key, exc)
            return False
