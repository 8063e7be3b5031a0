"""
Liveness and readiness probes.
"""

import time

from fastapi import APIRouter

from peerpresence.config import settings
from peerpresence.db.pool import db_health_check
from peerpresence.services.redis_client import redis_client

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz():
    """Always 200 while the process is up."""
    return {"status": "ok", "service": "peerpresence"}


@router.get("/readyz")
async def readyz():
    checks = {}

    t0 = time.time()
    db_health = await db_health_check()
    checks["database"] = {
        "ok": bool(db_health.get("healthy")),
        "latency_ms": round((time.time() - t0) * 1000, 1),
    }
    if not db_health.get("healthy"):
        checks["database"]["error"] = db_health.get("error", "Database unhealthy")
    if "warnings" in db_health:
        checks["database"]["warnings"] = db_health["warnings"]

    # Redis only matters when configured; the rate limiter fails open without it
    if redis_client.configured:
        t0 = time.time()
        redis_ok = await redis_client.ping()
        checks["redis"] = {"ok": redis_ok, "latency_ms": round((time.time() - t0) * 1000, 1)}
    else:
        checks["redis"] = {"ok": True, "configured": False}

    config_issues = []
    if settings.JWT_SECRET == "change-me" and settings.environment != "development":
        config_issues.append("JWT_SECRET uses the default value")
    checks["configuration"] = {
        "ok": not config_issues,
        "issues": config_issues or None,
        "environment": settings.environment,
    }

    overall_ok = all(check["ok"] for check in checks.values())
    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}


@router.get("/health/database")
async def database_health():
    """Detailed database pool health."""
    return await db_health_check()
