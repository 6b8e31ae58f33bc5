"""
Health check API routes
"""
from fastapi import APIRouter, HTTPException
from typing import Dict, Any
import asyncio
import time
from datetime import datetime, timezone

from configs.settings import settings
from data.database import db_manager
from utils.cache import cache
from utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()

STARTED_AT = time.monotonic()

def uptime_seconds() -> float:
    return round(time.monotonic() - STARTED_AT, 2)

@router.get("/health")
async def detailed_health_check():
    """Detailed health check"""
    start_time = time.time()
    health_details = {
        "status": "up",
        "service": settings.app_name,
        "version": settings.app_version,
        "uptime": uptime_seconds(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {}
    }

    health_details["checks"]["database"] = await _check_database_health()
    health_details["checks"]["cache"] = _check_cache_health()

    if health_details["checks"]["database"].get("status") != "healthy":
        health_details["status"] = "degraded"

    health_details["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    return health_details

@router.get("/health/readiness")
async def readiness_check():
    """Readiness check - for K8s readiness probe"""
    database = await _check_database_health()
    if database.get("status") != "healthy":
        raise HTTPException(
            status_code=503,
            detail="Service not ready: database unavailable"
        )
    return {"status": "ready", "service": settings.app_name, "checks": {"database": True}}

@router.get("/health/liveness")
async def liveness_check():
    """Liveness check - for K8s liveness probe"""
    return {
        "status": "alive",
        "service": settings.app_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

# Helper functions
async def _check_database_health() -> Dict[str, Any]:
    """Ping the database with a short timeout"""
    if not db_manager.is_initialized:
        return {"status": "unhealthy", "error": "Database not initialized"}
    try:
        started = time.time()
        ok = await asyncio.wait_for(db_manager.ping(), timeout=3.0)
        return {
            "status": "healthy" if ok else "unhealthy",
            "details": {"latency_ms": round((time.time() - started) * 1000, 2)}
        }
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

def _check_cache_health() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "details": {"enabled": cache.enabled, "entries": len(cache)}
    }
