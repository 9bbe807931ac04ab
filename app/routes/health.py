"""
Health check endpoints.
Used for monitoring, deployment readiness checks, and basic connectivity tests.
"""

from fastapi import APIRouter, Depends, HTTPException

from app.core.settings import settings
from app.models.report import utc_now
from app.routes.dependencies import get_services
from app.services.container import ServiceContainer


router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if service is running.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": utc_now().isoformat()
    }


@router.get("/db")
def database_health(services: ServiceContainer = Depends(get_services)):
    """
    Database connectivity check.
    Lists collections to verify the Firestore (or mock) client responds.
    """
    try:
        collections = list(services.db.collections())

        return {
            "status": "healthy",
            "database": "mock" if services.config.USE_MOCK_DB else "firestore",
            "connected": True,
            "collections_count": len(collections),
            "ai_provider": services.ai_provider.get_model_info(),
            "timestamp": utc_now().isoformat()
        }
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Database connection failed: {str(e)}"
        )
