"""
Health check API endpoints for tableadmin.

Provides a REST endpoint for monitoring database connectivity.
"""

import logging
import time
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .database import get_database
from .models import HealthStatus


def create_health_router() -> APIRouter:
    """Create and configure the health check API router."""
    router = APIRouter(prefix="/api/health", tags=["Health Checks"])

    @router.get("", response_model=HealthStatus)
    def get_system_health(request: Request):
        """
        Overall service health, suitable for load balancer checks.

        Responds 503 when the database cannot be reached.
        """
        checks = {}
        overall_status = "healthy"

        try:
            database = getattr(request.app.state, "database", None) or get_database()
            db_health = database.get_health_status()
            checks["database"] = db_health
            if db_health["status"] != "healthy":
                overall_status = "unhealthy"
        except (RuntimeError, SQLAlchemyError) as e:
            logging.error(f"Database health check failed: {e}")
            checks["database"] = {
                "status": "unhealthy",
                "error": str(e),
                "timestamp": time.time(),
            }
            overall_status = "unhealthy"

        health = HealthStatus(status=overall_status, timestamp=time.time(), checks=checks)
        if overall_status != "healthy":
            return JSONResponse(status_code=503, content=health.model_dump())
        return health

    return router
