"""API routes for chilltv"""

from fastapi import APIRouter

from .channel import router as channel_router
from .health import router as health_router
from .playback import router as playback_router

# Create the main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(channel_router)
api_router.include_router(playback_router)
api_router.include_router(health_router)

__all__ = ["api_router"]
