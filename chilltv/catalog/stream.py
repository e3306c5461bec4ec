"""Stream URL construction for catalog items."""

import logging
from typing import Optional

from chilltv.catalog.models import CatalogItem

logger = logging.getLogger(__name__)


def build_stream_url(item: CatalogItem, stream_host: str) -> Optional[str]:
    """
    Build the torrent stream URL for an item.

    Format: ``{stream_host}/stream/{torrent_hash}/{resource_index}``.

    Returns:
        The URL, or None when the item has no torrent metadata.
    """
    if not item.is_streamable:
        logger.debug(f"Item {item.id} has no stream metadata")
        return None

    return f"{stream_host.rstrip('/')}/stream/{item.torrent_hash}/{item.resource_index}"
