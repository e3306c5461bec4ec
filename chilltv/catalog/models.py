"""
Catalog data model.

A catalog item is one stored movie as returned by the indexer API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Seconds assumed for any item whose duration is unknown or zero
DEFAULT_DURATION = 7200


@dataclass(frozen=True)
class CatalogItem:
    """A stored movie that can be put on the channel."""

    id: str
    title: str
    duration: int = DEFAULT_DURATION
    tmdb_id: Optional[int] = None
    torrent_hash: Optional[str] = None
    resource_index: Optional[int] = None
    classification: Optional[str] = None
    poster_path: Optional[str] = None

    @property
    def is_streamable(self) -> bool:
        """Check whether the item carries enough metadata to build a stream URL."""
        return bool(self.torrent_hash) and self.resource_index is not None

    @classmethod
    def from_api(
        cls,
        data: Dict[str, Any],
        default_duration: int = DEFAULT_DURATION,
    ) -> "CatalogItem":
        """
        Build an item from an indexer API record.

        The API names the duration ``movieDuration``; ``duration`` is also
        accepted. Missing, zero or malformed durations fall back to
        ``default_duration``.
        """
        raw_duration = data.get("movieDuration", data.get("duration"))
        try:
            duration = int(raw_duration) if raw_duration is not None else 0
        except (TypeError, ValueError):
            duration = 0
        if duration <= 0:
            duration = default_duration

        tmdb_id = data.get("tmdb_id")
        item_id = data.get("id")
        if item_id is None:
            item_id = tmdb_id

        resource_index = data.get("resource_index")

        return cls(
            id=str(item_id),
            title=data.get("title") or "Untitled",
            duration=duration,
            tmdb_id=int(tmdb_id) if tmdb_id is not None else None,
            torrent_hash=data.get("torrent_hash"),
            resource_index=int(resource_index) if resource_index is not None else None,
            classification=data.get("classification"),
            poster_path=data.get("poster_path"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "tmdb_id": self.tmdb_id,
            "torrent_hash": self.torrent_hash,
            "resource_index": self.resource_index,
            "classification": self.classification,
            "poster_path": self.poster_path,
        }
