"""
Pantry API — Health Check Route
================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   Load balancers route away from instances that cannot serve requests.
How:   Probes the database, OpenFoodFacts and the response cache store.

Status levels:
    - healthy:   every dependency operational (HTTP 200)
    - degraded:  OpenFoodFacts or the cache is down (HTTP 200); catalog reads
                 still work, enrichment and caching do not
    - unhealthy: the database is down (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import text

from pantry_api import __version__
from pantry_api.database import engine
from pantry_api.schemas.common import HealthResponse
from pantry_api.services.openfoodfacts_service import CircuitBreaker, openfoodfacts_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module-level: set once at import
_start_time = time.time()


def _degrade(overall: str) -> str:
    return "degraded" if overall != "unhealthy" else overall


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description=(
        "Returns the health status of the service and its dependencies. "
        "Answers 503 when the database is unreachable."
    ),
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Lightweight probes only: SELECT 1, the OpenFoodFacts circuit state plus one
    product lookup, and a write/read of the cache health key.
    """
    db_status = "connected"
    off_status = "available"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check OpenFoodFacts ───────────────────────────────────────────────
    if openfoodfacts_service.circuit_breaker.state == CircuitBreaker.OPEN:
        off_status = "circuit_open"
        overall = _degrade(overall)
    elif not await openfoodfacts_service.health_check():
        off_status = "unavailable"
        overall = _degrade(overall)

    # ── Check Response Cache ──────────────────────────────────────────────
    cache_stats = await request.app.state.cache_service.get_stats()
    if not cache_stats["connected"]:
        overall = _degrade(overall)

    if overall == "unhealthy":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        openfoodfacts=off_status,
        cache="connected" if cache_stats["connected"] else "disconnected",
        cache_backend=cache_stats["backend"],
        uptime_seconds=round(time.time() - _start_time, 2),
    )
