"""
Rate Limit Dependencies - per-person and per-IP limits for write endpoints.

Usage:
    @router.post("/{conversation_id}")
    async def send(
        person_id: str = Depends(get_current_person_id),
        _rate: None = Depends(rate_limit_messages),
    ):
        ...
"""

from fastapi import Depends, Request

from peerpresence.auth.verify import get_current_person_id
from peerpresence.config import settings
from peerpresence.errors import TooManyRequests
from peerpresence.infrastructure.observability.logging import get_logger
from peerpresence.middleware.rate_limiter import rate_limiter

logger = get_logger(__name__)


async def _enforce(request: Request, key: str, limit: int) -> None:
    allowed, info = await rate_limiter.check(key, limit)
    request.state.rate_limit_info = info

    if not allowed:
        logger.warning(
            "Rate limit exceeded",
            key=key,
            limit=info["limit"],
            retry_after=info["retry_after"],
            path=request.url.path,
        )
        raise TooManyRequests(info["retry_after"])


async def rate_limit_ip(request: Request) -> None:
    if not settings.RATE_LIMIT_ENABLED:
        return

    ip_address = getattr(request.state, "ip_address", None)
    if not ip_address:
        return
    await _enforce(request, f"ip:{ip_address}", settings.get_rate_limits()["ip_per_minute"])


async def rate_limit_person(
    request: Request,
    person_id: str = Depends(get_current_person_id),
) -> None:
    """General per-person budget plus the IP budget."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    await rate_limit_ip(request)
    await _enforce(request, f"person:{person_id}", settings.get_rate_limits()["user_per_minute"])


async def rate_limit_messages(
    request: Request,
    person_id: str = Depends(get_current_person_id),
) -> None:
    """Tighter budget for sending direct messages."""
    if not settings.RATE_LIMIT_ENABLED:
        return

    await rate_limit_ip(request)
    await _enforce(request, f"messages:{person_id}", settings.get_rate_limits()["messages_per_minute"])
