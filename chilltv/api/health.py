"""Health check API endpoint for chilltv"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

from chilltv import __version__

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(request: Request) -> dict[str, Any]:
    """Report service status and channel state."""
    service = getattr(request.app.state, "channel_service", None)

    channel: dict[str, Any] = {"status": "stopped"}
    if service is not None:
        channel = {
            "status": "running" if service.is_running else "stopped",
            "programs": len(service.engine.schedule),
            "catalog_error": service.last_error,
            "pending_writes": len(service.persister.pending_ids()),
        }

    healthy = service is not None and service.last_error is None
    return {
        "status": "healthy" if healthy else "degraded",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "channel": channel,
    }
