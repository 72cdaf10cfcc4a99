"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from adapter.mongodb.connection import get_mongodb_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request):
    """Health check endpoint with dependency status."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": {},
        "providers": {
            "google": getattr(request.app.state, "google_auth", None) is not None,
            "steam": getattr(request.app.state, "steam_auth", None) is not None,
        },
    }

    overall_healthy = True

    try:
        mongo_client = get_mongodb_client()
        if mongo_client:
            mongo_client.admin.command('ping')
            health_status["services"]["mongodb"] = {
                "status": "healthy",
                "message": "Connection successful"
            }
        else:
            health_status["services"]["mongodb"] = {
                "status": "unhealthy",
                "message": "Connection failed or not configured"
            }
            overall_healthy = False
    except PyMongoError as e:
        logger.warning("MongoDB health check failed", extra={"error": str(e)[:200]})
        health_status["services"]["mongodb"] = {
            "status": "unhealthy",
            "message": "Connection error"
        }
        overall_healthy = False

    if not overall_healthy:
        health_status["status"] = "degraded"

    status_code = status.HTTP_200_OK if overall_healthy else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        content=health_status,
        status_code=status_code
    )
