"""
Domain errors and their HTTP translation.

Services raise these; the handlers registered in ``register_exception_handlers``
turn them into ``{"message": ...}`` responses so routes stay free of status
bookkeeping. Anything that is not a ``PeerPresenceError`` is logged and
reported as a generic 500.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from peerpresence.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class PeerPresenceError(Exception):
    """Base exception for the PeerPresence backend."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    headers: dict[str, str] | None = None

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(PeerPresenceError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class Unauthorized(PeerPresenceError):
    """Caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class Forbidden(PeerPresenceError):
    """Caller is authenticated but not allowed to touch the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(PeerPresenceError):
    """Referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(PeerPresenceError):
    """Duplicate value for a unique field."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class TooManyRequests(PeerPresenceError):
    """Caller exceeded a rate limit."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests"

    def __init__(self, retry_after: int, message: str | None = None):
        super().__init__(message or f"Too many requests. Try again in {retry_after} seconds.")
        self.retry_after = retry_after
        self.headers = {"Retry-After": str(retry_after)}


async def _domain_error_handler(request: Request, exc: PeerPresenceError) -> JSONResponse:
    logger.info(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        message=exc.message,
    )
    headers = dict(exc.headers or {})
    if isinstance(exc, Unauthorized):
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.status_code, content={"message": exc.message}, headers=headers or None
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PeerPresenceError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
