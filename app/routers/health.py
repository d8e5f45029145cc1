"""
Health Check Router

Provides health check endpoints for monitoring application status.
"""

import os
import time
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.config import get_session
from app.models.library import HealthCheckResponse

# Initialize router
router = APIRouter()

# Application start time for uptime calculation
_start_time = time.time()


@router.get("/health", response_model=HealthCheckResponse, summary="Basic Health Check")
async def health_check():
    """
    Basic health check endpoint

    Returns application status, version, and environment information.
    This endpoint is used by load balancers and monitoring systems.
    """
    uptime = time.time() - _start_time

    return HealthCheckResponse(
        status="healthy",
        version=os.getenv("APP_VERSION", "1.0.0"),
        environment=os.getenv("ENVIRONMENT", "development"),
        timestamp=datetime.utcnow(),
        uptime=uptime
    )


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check(session: AsyncSession = Depends(get_session)):
    """
    Kubernetes-style readiness probe

    Returns 200 if the database answers, 503 otherwise.
    """
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=503,
            detail=f"Application not ready: database unavailable ({type(e).__name__})"
        )
    return {"status": "ready", "timestamp": datetime.utcnow().isoformat()}


@router.get("/health/live", summary="Liveness Check")
async def liveness_check():
    """
    Kubernetes-style liveness probe

    Returns 200 if the application is alive and responding.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
        "pid": os.getpid()
    }
