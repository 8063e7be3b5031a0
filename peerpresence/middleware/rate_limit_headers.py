"""
Adds X-RateLimit-* headers from request.state.rate_limit_info, when a rate
limit dependency ran for the request.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)

        info = getattr(request.state, "rate_limit_info", None)
        if not info:
            return response

        response.headers["X-RateLimit-Limit"] = str(info["limit"])
        response.headers["X-RateLimit-Remaining"] = str(info["remaining"])
        if info.get("retry_after"):
            response.headers["Retry-After"] = str(info["retry_after"])
            response.headers["X-RateLimit-Reset"] = str(int(time.time()) + info["retry_after"])
        return response
