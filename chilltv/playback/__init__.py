"""
chilltv Playback State

Per-title resume position and player settings, persisted across sessions.
"""

from chilltv.playback.models import PLAYBACK_SCHEMA_VERSION, PlaybackConfig, PlaybackConfigPatch
from chilltv.playback.persister import PlaybackStatePersister
from chilltv.playback.player import PlaybackSession, PlayerAdapter, PlayerEvent
from chilltv.playback.store import (
    JsonFilePlaybackStore,
    MemoryPlaybackStore,
    PlaybackConfigStore,
    PlaybackStoreError,
    create_store,
    storage_key,
)

__all__ = [
    "PLAYBACK_SCHEMA_VERSION",
    "PlaybackConfig",
    "PlaybackConfigPatch",
    "PlaybackStatePersister",
    "PlaybackSession",
    "PlayerAdapter",
    "PlayerEvent",
    "JsonFilePlaybackStore",
    "MemoryPlaybackStore",
    "PlaybackConfigStore",
    "PlaybackStoreError",
    "create_store",
    "storage_key",
]
