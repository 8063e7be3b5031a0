"""
Application entrypoint.

`api` is the FastAPI app (REST under /api plus health probes); `app` wraps it
with the Socket.IO server so both share one ASGI process.
"""

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from peerpresence.config import settings
from peerpresence.db.pool import db_pool
from peerpresence.errors import register_exception_handlers
from peerpresence.infrastructure.observability.logging import get_logger, setup_logging
from peerpresence.middleware.rate_limit_headers import RateLimitHeadersMiddleware
from peerpresence.middleware.request_context import RequestContextMiddleware
from peerpresence.realtime.gateway import sio
from peerpresence.routes import (
    account,
    bookings,
    catalog,
    chat,
    conversations,
    health,
    messages,
    posts,
)
from peerpresence.services.redis_client import redis_client

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    await db_pool.initialize()
    try:
        # Optional; the rate limiter fails open when Redis is absent
        await redis_client.initialize()
    except Exception:
        await db_pool.close()
        raise

    logger.info("Services initialized", redis=redis_client.initialized)

    yield

    logger.info("Application shutting down")
    shutdown_errors = []

    try:
        await redis_client.close()
    except Exception as e:
        logger.error("Error closing Redis", error=str(e))
        shutdown_errors.append(f"Redis: {e}")

    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))
        shutdown_errors.append(f"Database: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)


api = FastAPI(
    title="PeerPresence",
    description="Tutoring marketplace API with realtime direct messaging",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(api)

# Starlette runs the last added middleware first
api.add_middleware(RateLimitHeadersMiddleware)
api.add_middleware(RequestContextMiddleware)
api.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Retry-After"],
)

api.include_router(health.router)
for router in (
    catalog.tutors_router,
    catalog.courses_router,
    catalog.subjects_router,
    catalog.search_router,
    posts.router,
    account.router,
    bookings.router,
    conversations.router,
    messages.router,
    chat.router,
):
    api.include_router(router, prefix="/api")

app = socketio.ASGIApp(sio, other_asgi_app=api, socketio_path=settings.SOCKETIO_PATH)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
