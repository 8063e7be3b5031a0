"""
RequestContext Middleware - request id, client address and access logging.

Sets on request.state:
- request_id: echoed back as X-Request-ID (an incoming X-Request-ID is reused)
- ip_address: client IP, honouring X-Forwarded-For only from trusted proxies
- user_agent

request.state namespace: the three keys above plus rate_limit_info, which
the rate limit dependencies set.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from peerpresence.config import settings
from peerpresence.infrastructure.observability.logging import get_logger, log_request

logger = get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        request.state.ip_address = self._extract_client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            request_id=request_id,
        )
        return response

    def _extract_client_ip(self, request: Request) -> str | None:
        direct = request.client.host if request.client else None
        if not settings.TRUST_X_FORWARDED_FOR or direct not in settings.TRUSTED_PROXY_IPS:
            return direct

        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # "client, proxy1, proxy2"
            return forwarded_for.split(",")[0].strip()
        return direct
