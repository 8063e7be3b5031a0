"""
Rate Limiter - Redis sliding-window request limiting.

Each key is a sorted set of request timestamps; a Lua script trims the
window, counts and records atomically. When Redis is missing or failing the
limiter follows RATE_LIMIT_FAIL_OPEN.
"""

import time

from peerpresence.config import settings
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.services.redis_client import redis_client

logger = get_logger(__name__)


class RateLimiter:
    # Returns {allowed (0/1), count, oldest timestamp or 0}
    SLIDING_WINDOW_LUA = """
    local key = KEYS[1]
    local limit = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])

    redis.call('ZREMRANGEBYSCORE', key, 0, now - window)
    local count = redis.call('ZCARD', key)

    if count >= limit then
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        if #oldest > 0 then
            return {0, count, tonumber(oldest[2])}
        end
        return {0, count, 0}
    end

    redis.call('ZADD', key, now, ARGV[4])
    redis.call('EXPIRE', key, window * 2)
    return {1, count + 1, 0}
    """

    def __init__(self, window_seconds: int = 60, fail_open: bool = True):
        self.window_seconds = window_seconds
        self.fail_open = fail_open

    def _degraded(self, limit: int, reason: str) -> tuple[bool, dict]:
        allowed = self.fail_open
        return allowed, {
            "allowed": allowed,
            "limit": limit,
            "remaining": limit if allowed else 0,
            "retry_after": None if allowed else self.window_seconds,
            "error": reason,
        }

    async def check(self, key: str, limit: int) -> tuple[bool, dict]:
        """
        Record one request against ``key`` and report whether it is allowed.

        Returns (allowed, info) where info carries limit, remaining and
        retry_after (seconds, only when rejected).
        """
        if redis_client.client is None:
            return self._degraded(limit, "redis_not_initialized")

        now = int(time.time())
        try:
            allowed, count, oldest = await redis_client.client.eval(
                self.SLIDING_WINDOW_LUA,
                1,
                f"ratelimit:{key}",
                limit,
                self.window_seconds,
                now,
                f"{now}:{time.time_ns()}",
            )
        except Exception as e:
            logger.error("Rate limiter Redis error", key=key, error=str(e), error_type=type(e).__name__)
            return self._degraded(limit, "rate_limiter_error")

        if not allowed:
            oldest = int(oldest or 0)
            retry_after = max(1, oldest + self.window_seconds - now) if oldest else self.window_seconds
            return False, {"allowed": False, "limit": limit, "remaining": 0, "retry_after": retry_after}

        return True, {
            "allowed": True,
            "limit": limit,
            "remaining": max(0, limit - int(count)),
            "retry_after": None,
        }


rate_limiter = RateLimiter(
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    fail_open=settings.RATE_LIMIT_FAIL_OPEN,
)
