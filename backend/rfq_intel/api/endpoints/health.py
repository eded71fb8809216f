"""Health check endpoints for monitoring."""
from typing import Dict, Any
from fastapi import APIRouter, Depends

from rfq_intel.api.dependencies import get_catalog_store
from rfq_intel.core.config import settings
from rfq_intel.services.catalog_store import CatalogStore

router = APIRouter()

@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint (supports GET & HEAD)."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "1.0.0"
    }

@router.get("/health/detailed")
async def detailed_health_check(store: CatalogStore = Depends(get_catalog_store)) -> Dict[str, Any]:
    """Detailed health check with service status."""
    health_status = {
        "status": "healthy",
        "services": {}
    }

    # Check Redis
    try:
        await store.ping()
        health_status["services"]["redis"] = "healthy"
    except Exception as e:
        health_status["services"]["redis"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    health_status["services"]["cost_api"] = settings.COST_API_BASE_URL
    health_status["services"]["extraction_api"] = settings.EXTRACTION_API_BASE_URL
    return health_status
