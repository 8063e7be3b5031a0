"""
structlog configuration.

Every event is one JSON line on stdout with timestamp, level and logger
name. Modules get their logger with ``get_logger(__name__)`` and log
key/value pairs.
"""

import logging
import sys

import structlog

# Libraries whose INFO output would drown ours
QUIET_LOGGERS = ("uvicorn.access", "socketio", "engineio", "psycopg.pool")


def setup_logging(log_level: str = "INFO") -> None:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: str | None = None,
) -> None:
    """Access log line; 4xx at warning, 5xx at error."""
    fields = {"method": method, "path": path, "status_code": status_code, "duration_ms": duration_ms}
    if request_id:
        fields["request_id"] = request_id

    logger = get_logger("http")
    if status_code >= 500:
        logger.error("Request errored", **fields)
    elif status_code >= 400:
        logger.warning("Request rejected", **fields)
    else:
        logger.info("Request completed", **fields)
