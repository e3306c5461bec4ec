"""
chilltv Main Application

FastAPI application entry point for the live channel.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI

from chilltv import __version__
from chilltv.config import ChillTVConfig, get_config
from chilltv.services.channel_service import ChannelService

# Logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Starts the channel service (catalog load + tick loop) on startup and
    flushes pending playback state on shutdown.
    """
    logger.info(f"Starting chilltv v{__version__}")

    service: Optional[ChannelService] = getattr(app.state, "channel_service", None)
    if service is None:
        service = ChannelService.from_config(app.state.config)
        app.state.channel_service = service

    await service.start()
    if service.last_error:
        logger.warning("Channel started without a schedule; retry with POST /api/channel/refresh")

    yield

    try:
        await service.stop()
    except Exception as e:
        logger.warning(f"Error stopping channel service: {e}")

    logger.info("chilltv shutdown complete")


def create_app(
    config: Optional[ChillTVConfig] = None,
    service: Optional[ChannelService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration (defaults to the loaded global config).
        service: Pre-built channel service (used by tests).

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="chilltv",
        description="Live channel scheduling and playback state for Chillflix",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.config = config or get_config()
    if service is not None:
        app.state.channel_service = service

    from chilltv.api import api_router
    app.include_router(api_router)

    return app


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    from chilltv.config import load_config
    from chilltv.utils.logging_setup import parse_size, setup_logging

    config = load_config()

    setup_logging(
        log_level=config.logging.level,
        log_file_name=config.logging.file,
        max_bytes=parse_size(config.logging.max_size),
        backup_count=config.logging.backup_count,
        log_format=config.logging.format,
    )

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
