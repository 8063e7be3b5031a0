"""
Async Redis client used by the rate limiter and the readiness probe.

Redis is optional: without REDIS_URL the client stays uninitialized and the
rate limiter fails open.
"""

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from peerpresence.config import settings
from peerpresence.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    def __init__(self):
        self.pool: ConnectionPool | None = None
        self.client: redis.Redis | None = None

    @property
    def configured(self) -> bool:
        return bool(settings.REDIS_URL)

    @property
    def initialized(self) -> bool:
        return self.client is not None

    async def initialize(self) -> None:
        if self.client is not None or not self.configured:
            return

        self.pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            retry_on_timeout=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
            decode_responses=True,
        )
        client = redis.Redis(connection_pool=self.pool)

        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("Redis unavailable at startup", error=str(e))
            await self.pool.disconnect()
            self.pool = None
            return

        self.client = client
        logger.info("Redis client initialized")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        if self.pool is not None:
            await self.pool.disconnect()
        self.client = None
        self.pool = None

    async def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.error("Redis ping failed", error=str(e))
            return False


redis_client = RedisClient()
