"""Health check endpoint for AssetFlow."""

from fastapi import APIRouter

from assetflow.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Report service status, name and version without touching dependencies."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
    }
