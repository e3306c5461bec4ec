"""Shared FastAPI dependencies"""

from fastapi import HTTPException, Request

from chilltv.services.channel_service import ChannelService


def get_channel_service(request: Request) -> ChannelService:
    """Get the running ChannelService from application state."""
    service = getattr(request.app.state, "channel_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Channel service not running")
    return service
