# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Provides health check endpoints for monitoring and load balancers.
# =============================================================================

from fastapi import APIRouter
from pydantic import BaseModel

from app.config import settings
from app.dependencies import ContextDep
from lib.utils import utc_timestamp

router = APIRouter()

VERSION = "1.0.0"


# =============================================================================
# Response Models
# =============================================================================

class HealthResponse(BaseModel):
    """Basic health check response."""
    success: bool = True
    status: str
    timestamp: str
    environment: str
    version: str


class ChecksResponse(BaseModel):
    """Individual service checks."""
    database: str
    storage: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""
    success: bool
    status: str
    checks: ChecksResponse
    timestamp: str


class LivenessResponse(BaseModel):
    """Liveness check response."""
    success: bool = True
    status: str
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns basic health status for load balancers and monitoring.
    """
    return HealthResponse(
        status="healthy",
        timestamp=utc_timestamp(),
        environment=settings.ENVIRONMENT,
        version=VERSION,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(context: ContextDep):
    """
    Readiness check endpoint.

    Returns whether the service is ready to accept requests.
    Checks database and storage connectivity.
    """
    checks = ChecksResponse(database="unknown", storage="unknown")

    # Check database
    try:
        await context.store.ping()
        checks.database = "healthy"
    except Exception as e:
        checks.database = f"unhealthy: {str(e)[:50]}"

    # Check storage
    try:
        await context.storage.ping()
        checks.storage = "healthy"
    except Exception as e:
        checks.storage = f"unhealthy: {str(e)[:50]}"

    # Overall status
    all_healthy = checks.database == "healthy" and checks.storage == "healthy"

    return ReadinessResponse(
        success=all_healthy,
        status="ready" if all_healthy else "degraded",
        checks=checks,
        timestamp=utc_timestamp(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    """
    Liveness check endpoint.

    Returns whether the service process is alive.
    Used by Kubernetes/Docker for restart decisions.
    """
    return LivenessResponse(
        status="alive",
        timestamp=utc_timestamp(),
    )
