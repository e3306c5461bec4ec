"""Long-running services for chilltv."""

from chilltv.services.channel_service import ChannelService

__all__ = ["ChannelService"]
