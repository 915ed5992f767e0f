"""Health check endpoints.

- /health - Service health, version and analyzer readiness
- /health/db - Database connection pool health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from threadclear.config import APP_VERSION
from threadclear.observability.telemetry import get_counter, get_latency_stats

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    from threadclear.api.routes import parse

    return {
        "status": "healthy",
        "service": "ThreadClear API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "analyzer_ready": parse._analyzer is not None,
        "parse": {
            "requests": get_counter("parse.requests"),
            "latency": get_latency_stats("parse.latency"),
        },
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Database health check endpoint.

    Reports connection pool usage; degraded above 80%.
    """
    from threadclear.infrastructure.database import get_pool_stats

    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
