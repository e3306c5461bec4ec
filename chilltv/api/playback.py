"""Playback state API endpoints"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from ..playback.models import PlaybackConfig, PlaybackConfigPatch
from ..services.channel_service import ChannelService
from .deps import get_channel_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/playback", tags=["Playback"])


@router.get("/{content_id}")
async def get_playback_state(
    content_id: str,
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Get the saved playback state for a title.

    Falls back to defaults when nothing (or nothing readable) is stored.
    """
    config = service.persister.load(content_id)
    return {
        "content_id": content_id,
        "stored": config is not None,
        "config": (config or PlaybackConfig.defaults()).model_dump(),
    }


@router.put("/{content_id}")
async def put_playback_state(
    content_id: str,
    config: PlaybackConfig,
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Replace the saved playback state for a title immediately."""
    written = service.persister.save(content_id, config)
    return {"content_id": content_id, "written": written, "config": config.model_dump()}


@router.patch("/{content_id}", status_code=status.HTTP_202_ACCEPTED)
async def patch_playback_state(
    content_id: str,
    patch: PlaybackConfigPatch,
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Queue a debounced partial update (e.g. from player time updates)."""
    try:
        merged = service.persister.schedule_save(content_id, **patch.changes())
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {"content_id": content_id, "pending": True, "config": merged.model_dump()}


@router.post("/flush")
async def flush_playback_state(
    service: ChannelService = Depends(get_channel_service),
) -> dict[str, Any]:
    """Write every pending playback update now."""
    return {"written": service.persister.flush()}
