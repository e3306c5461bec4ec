"""
Player adapter boundary and playback session glue.

The player itself (decoding, rendering) is external. It is the only thing
that mutates live playback and the only source of "current time"; the
session listens to it and feeds the persister.
"""

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable

from chilltv.playback.models import PlaybackConfig
from chilltv.playback.persister import PlaybackStatePersister

logger = logging.getLogger(__name__)


class PlayerEvent(str, Enum):
    """Notifications a player emits."""

    TIME_UPDATE = "timeupdate"
    VOLUME_CHANGE = "volumechange"
    RATE_CHANGE = "ratechange"
    FULLSCREEN_CHANGE = "fullscreenchange"


PlayerListener = Callable[[PlayerEvent], None]


@runtime_checkable
class PlayerAdapter(Protocol):
    """
    Media player contract.

    Getters must never raise: get_current_time() and get_duration() return 0
    when no media is loaded.
    """

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...

    def set_volume(self, volume: float) -> None: ...

    def set_muted(self, muted: bool) -> None: ...

    def set_playback_rate(self, rate: float) -> None: ...

    def get_current_time(self) -> float: ...

    def get_duration(self) -> float: ...

    def get_volume(self) -> float: ...

    def is_muted(self) -> bool: ...

    def get_playback_rate(self) -> float: ...

    def select_audio_track(self, track_id: str) -> None: ...

    def select_quality(self, label: str) -> None: ...

    def select_subtitle(self, subtitle_id: Optional[str]) -> None: ...

    def subscribe(self, listener: PlayerListener) -> None: ...

    def unsubscribe(self, listener: PlayerListener) -> None: ...


def _valid_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


class PlaybackSession:
    """
    One open title: restores its saved settings into the player and keeps
    the stored record in step with what the player reports.
    """

    def __init__(
        self,
        content_id: str,
        player: PlayerAdapter,
        persister: PlaybackStatePersister,
    ):
        self.content_id = content_id
        self.player = player
        self.persister = persister
        self.is_fullscreen = False
        self._settings: Dict[str, Any] = {}
        self._open = False

    # ---------------------------------------------------------- lifecycle

    def open(self) -> PlaybackConfig:
        """
        Restore the saved config into the player and start listening.

        Returns:
            The config that was applied (defaults when nothing was stored).
        """
        config = self.persister.load(self.content_id)
        if config is None:
            config = PlaybackConfig.defaults()
            logger.debug(f"No saved playback state for {self.content_id}, using defaults")

        try:
            self._apply(config)
        except Exception as e:
            logger.error(f"Error restoring playback state for {self.content_id}: {e}")
            config = PlaybackConfig.defaults()
            self.player.seek(0)
            self.player.set_volume(1.0)
            self.player.set_muted(False)

        self._settings = {
            "quality_label": config.quality_label,
            "language_code": config.language_code,
            "audio_track_id": config.audio_track_id,
            "subtitle_id": config.subtitle_id,
        }
        self.player.subscribe(self.handle_event)
        self._open = True
        return config

    def close(self) -> None:
        """Save a final snapshot immediately and stop listening."""
        if not self._open:
            return
        self.player.unsubscribe(self.handle_event)
        self._open = False

        changes = self.snapshot()
        if changes is not None:
            self.persister.schedule_save(self.content_id, **changes)
        self.persister.flush()

    def _apply(self, config: PlaybackConfig) -> None:
        duration = self.player.get_duration()
        position = config.position_seconds
        if position > 0 and _valid_number(duration) and position < duration:
            self.player.seek(position)
        else:
            self.player.seek(0)

        self.player.set_volume(config.volume)
        self.player.set_muted(config.muted)
        self.player.set_playback_rate(config.playback_rate)

        if config.quality_label:
            self.player.select_quality(config.quality_label)
        if config.audio_track_id:
            self.player.select_audio_track(config.audio_track_id)
        self.player.select_subtitle(config.subtitle_id)

    # ------------------------------------------------------------- events

    def handle_event(self, event: PlayerEvent) -> None:
        """Player notification entry point."""
        if event == PlayerEvent.FULLSCREEN_CHANGE:
            self.is_fullscreen = not self.is_fullscreen
            return
        self.save_snapshot()

    def snapshot(self) -> Optional[Dict[str, Any]]:
        """
        Current player state as PlaybackConfig fields.

        Returns:
            None while the player has no valid duration (nothing loaded).
        """
        duration = self.player.get_duration()
        if not _valid_number(duration) or duration <= 0:
            return None

        current_time = self.player.get_current_time()
        volume = self.player.get_volume()
        muted = self.player.is_muted()
        rate = self.player.get_playback_rate()

        return {
            "position_seconds": current_time if _valid_number(current_time) and current_time >= 0 else 0.0,
            "volume": volume if _valid_number(volume) and 0 <= volume <= 1 else 1.0,
            "muted": muted if isinstance(muted, bool) else False,
            "playback_rate": rate if _valid_number(rate) and rate > 0 else 1.0,
            **self._settings,
        }

    def save_snapshot(self) -> Optional[PlaybackConfig]:
        """Queue a debounced save of the current player state."""
        changes = self.snapshot()
        if changes is None:
            return None
        return self.persister.schedule_save(self.content_id, **changes)

    # ----------------------------------------------------------- controls

    def toggle_mute(self) -> bool:
        muted = not self.player.is_muted()
        self.player.set_muted(muted)
        self.save_snapshot()
        return muted

    def select_quality(self, label: str) -> None:
        self.player.select_quality(label)
        self._update_setting("quality_label", label)

    def select_audio_track(self, track_id: str) -> None:
        self.player.select_audio_track(track_id)
        self._update_setting("audio_track_id", track_id)

    def select_subtitle(self, subtitle_id: Optional[str]) -> None:
        self.player.select_subtitle(subtitle_id)
        self._update_setting("subtitle_id", subtitle_id)

    def select_language(self, language_code: str) -> None:
        self._update_setting("language_code", language_code)

    def _update_setting(self, field: str, value: Any) -> None:
        self._settings[field] = value
        if self.save_snapshot() is None:
            # No media yet: keep the choice so the first real save carries it
            self.persister.schedule_save(self.content_id, **{field: value})
