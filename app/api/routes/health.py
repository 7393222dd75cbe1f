"""Health check routes."""

import asyncio

import structlog
from fastapi import APIRouter, Request

from app.schemas.v1.health import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check."""
    return HealthResponse(status="ok")


@router.get("/health/ready", response_model=ReadyResponse)
async def readiness_check(request: Request):
    """Readiness check with media storage status."""
    storage_ok = False
    storage = getattr(request.app.state, "storage_client", None)
    if storage is not None:
        try:
            storage_ok = await asyncio.wait_for(storage.health_check(), timeout=5.0)
        except TimeoutError:
            logger.warning("Storage readiness check timed out")
    else:
        logger.warning("Storage client not available on app.state for readiness check")

    return ReadyResponse(
        status="ready" if storage_ok else "degraded",
        dependencies={"storage": storage_ok},
    )


@router.get("/health/live", response_model=HealthResponse)
async def liveness_check():
    """Liveness check."""
    return HealthResponse(status="alive")
