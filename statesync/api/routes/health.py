"""
Health Check Endpoints.

Provides health status for the API and its database.
"""
import time
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from ..models import HealthStatus
from ..deps import get_database
from ...database.connection import Database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthStatus)
def health_check(request: Request, db: Database = Depends(get_database)):
    """
    Basic health check endpoint.

    Returns overall system status.
    """
    services = {}
    overall_healthy = True

    try:
        start = time.time()
        db.ping()
        latency = (time.time() - start) * 1000
        services["database"] = f"healthy ({latency:.1f}ms)"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        services["database"] = f"unhealthy: {str(e)}"
        overall_healthy = False

    return HealthStatus(
        status="healthy" if overall_healthy else "unhealthy",
        version=request.app.state.settings.app_version,
        services=services,
        timestamp=datetime.now(timezone.utc),
    )
