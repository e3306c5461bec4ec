"""
chilltv - Live channel engine for the Chillflix streaming client

Turns a catalog of stored movies into a continuous linear channel:
- Back-to-back schedule anchored to the top of the hour
- "Now playing" resolution ticked every second
- Manual override (jump to a title, skip to next)
- Per-title playback state persistence (resume position, volume, tracks)
"""

__version__ = "1.0.0"
__author__ = "Chillflix Contributors"
__license__ = "MIT"

from chilltv.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
