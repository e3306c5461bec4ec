"""
chilltv Catalog

Stored movies that feed the linear channel, and how to stream them.
"""

from chilltv.catalog.client import CatalogClient, CatalogFetchError, search_items
from chilltv.catalog.models import DEFAULT_DURATION, CatalogItem
from chilltv.catalog.stream import build_stream_url

__all__ = [
    "CatalogClient",
    "CatalogFetchError",
    "CatalogItem",
    "DEFAULT_DURATION",
    "build_stream_url",
    "search_items",
]
