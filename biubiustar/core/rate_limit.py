"""Sliding-window rate limiting backed by a Redis sorted set."""
import logging
import time
import uuid
from dataclasses import dataclass

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """At most `limit` hits per `window_seconds` for each key.

    Every accepted hit is a member of the key's sorted set, scored by its
    timestamp; members older than the window are pruned before counting.
    Rejected hits are not recorded.
    """

    def __init__(self, limit: int, window_seconds: int, prefix: str = "rl"):
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    def _key(self, identity: str) -> str:
        return f"{self.prefix}:{identity}"

    async def hit(self, client: redis.Redis, identity: str, now: float | None = None) -> RateLimitResult:
        now = time.time() if now is None else now
        key = self._key(identity)
        window_start = now - self.window_seconds
        try:
            await client.zremrangebyscore(key, 0, window_start)
            count = await client.zcard(key)
            if count >= self.limit:
                oldest = await client.zrange(key, 0, 0, withscores=True)
                retry_after = self.window_seconds
                if oldest:
                    retry_after = max(1, int(oldest[0][1] + self.window_seconds - now) + 1)
                return RateLimitResult(allowed=False, remaining=0, retry_after=retry_after)
            await client.zadd(key, {f"{now}:{uuid.uuid4().hex}": now})
            await client.expire(key, self.window_seconds)
            return RateLimitResult(allowed=True, remaining=self.limit - count - 1)
        except RedisError as exc:
            # Redis down: let the request through rather than block all traffic
            logger.warning("rate limiter unavailable for %s: %s", key, exc)
            return RateLimitResult(allowed=True, remaining=self.limit)
