"""Live channel API endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from ..services.channel_service import ChannelService
from .deps import get_channel_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/channel", tags=["Channel"])


def now_playing_response(service: ChannelService) -> dict[str, Any]:
    """Build the now-playing payload from the service's last tick."""
    view = service.engine.current
    if view is None:
        status = "idle" if service.engine.has_schedule else "no_schedule"
        return {"status": status, "error": service.last_error}

    return {
        "status": "playing",
        **view.to_dict(),
        "stream_url": service.stream_url(view.program),
    }


@router.get("/now")
async def get_now_playing(
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Get what is on the channel right now.

    Returns:
        Now-playing payload, or an idle status when nothing airs
    """
    service.engine.tick()
    return now_playing_response(service)


@router.get("/guide")
async def get_guide(
    limit: int | None = Query(default=None, ge=1),
    service: ChannelService = Depends(get_channel_service),
) -> list[dict[str, Any]]:
    """Get the program guide with live/upcoming/ended labels.

    Args:
        limit: Maximum number of entries (defaults to the configured guide size)
        service: Channel service

    Returns:
        List of guide entries
    """
    return [entry.to_dict() for entry in service.engine.guide(limit=limit or service.guide_size)]


@router.get("/upcoming")
async def get_upcoming(
    count: int = Query(default=10, ge=1, le=100),
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Get programs that have not started yet and the time to the next boundary."""
    until_next = service.engine.time_until_next()
    return {
        "programs": [p.to_dict() for p in service.engine.upcoming(count=count)],
        "seconds_until_next": until_next.total_seconds() if until_next else None,
    }


@router.get("/search")
async def search_catalog(
    q: str = Query(..., min_length=1),
    service: ChannelService = Depends(get_channel_service),
) -> list[dict[str, Any]]:
    """Search the loaded catalog by title."""
    return [item.to_dict() for item in service.search(q)]


@router.post("/select/{item_id}")
async def select_program(
    item_id: str,
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Switch the channel to a program right now."""
    program = service.engine.select(item_id)
    if program is None:
        raise HTTPException(status_code=404, detail="Program not on the schedule")

    return {
        "message": f"Now playing: {program.title}",
        **now_playing_response(service),
    }


@router.post("/skip")
async def skip_to_next(
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Skip to the next program, wrapping to the first after the last."""
    program = service.engine.skip_next()
    if program is None:
        raise HTTPException(status_code=409, detail="Nothing to skip")

    return {
        "message": f"Now playing: {program.title}",
        **now_playing_response(service),
    }


@router.delete("/override")
async def clear_override(
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Go back to the natural schedule."""
    service.engine.clear_override()
    return now_playing_response(service)


@router.post("/refresh")
async def refresh_catalog(
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Refetch the catalog and rebuild the schedule."""
    if not await service.refresh():
        raise HTTPException(
            status_code=503,
            detail=f"Could not load the channel content: {service.last_error}",
        )
    service.engine.tick()
    return {"programs": len(service.engine.schedule)}
