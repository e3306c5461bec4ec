"""Pydantic model for the per-title playback record"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

PLAYBACK_SCHEMA_VERSION = 1


class PlaybackConfig(BaseModel):
    """Resume position and player settings for one title."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    schema_version: int = PLAYBACK_SCHEMA_VERSION
    position_seconds: float = Field(default=0.0, ge=0)
    volume: float = Field(default=1.0, ge=0, le=1)
    muted: bool = False
    quality_label: str = ""
    language_code: str = ""
    subtitle_id: Optional[str] = None
    audio_track_id: str = ""
    playback_rate: float = Field(default=1.0, gt=0)

    @classmethod
    def defaults(cls) -> "PlaybackConfig":
        """Settings used when a title has never been played."""
        return cls()

    def merged(self, **changes: Any) -> "PlaybackConfig":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return PlaybackConfig.model_validate(data)

    def to_json(self) -> str:
        """Canonical JSON form; equal configs always serialize identically."""
        return json.dumps(self.model_dump(), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> "PlaybackConfig":
        return cls.model_validate_json(raw)


class PlaybackConfigPatch(BaseModel):
    """Partial update of a title's playback settings.

    Only the fields present in the request are applied; unknown keys are
    rejected.
    """

    model_config = ConfigDict(extra="forbid")

    position_seconds: Optional[float] = Field(default=None, ge=0)
    volume: Optional[float] = Field(default=None, ge=0, le=1)
    muted: Optional[bool] = None
    quality_label: Optional[str] = None
    language_code: Optional[str] = None
    subtitle_id: Optional[str] = None
    audio_track_id: Optional[str] = None
    playback_rate: Optional[float] = Field(default=None, gt=0)

    def changes(self) -> dict[str, Any]:
        """Fields the client actually sent."""
        return self.model_dump(exclude_unset=True)
