"""
Playback config stores.

Key-value repositories for PlaybackConfig records. Backends only move raw
JSON strings around; key naming, serialization and the recently-used index
live in the PlaybackConfigStore base class so every backend behaves the same.
"""

import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from pydantic import ValidationError

from chilltv.playback.models import PlaybackConfig

logger = logging.getLogger(__name__)

KEY_PREFIX = "videoState_"
INDEX_KEY = "videoStateIndex"
DEFAULT_MAX_RECORDS = 10

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


class PlaybackStoreError(Exception):
    """Raised when a stored record cannot be read or decoded."""


def storage_key(content_id: str) -> str:
    """
    Storage key for a title: special characters become underscores.

    Ids that differ only in special characters (``a-b`` and ``a_b``) map to
    the same key and therefore share one record.
    """
    return f"{KEY_PREFIX}{_UNSAFE_CHARS.sub('_', str(content_id))}"


class PlaybackConfigStore(ABC):
    """
    Repository of one PlaybackConfig per content id.

    Writes are last-write-wins. Only the ``max_records`` most recently
    written titles are kept; older ones are evicted on write.
    """

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS):
        self.max_records = max_records

    # Backend primitives

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """Read a raw value, None if absent."""

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        """Write a raw value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a raw value if present."""

    # Typed repository

    def get(self, content_id: str) -> Optional[PlaybackConfig]:
        """
        Get the stored config for a title.

        Raises:
            PlaybackStoreError: If a record exists but cannot be decoded.
        """
        raw = self.read(storage_key(content_id))
        if raw is None:
            return None
        try:
            return PlaybackConfig.from_json(raw)
        except ValidationError as e:
            raise PlaybackStoreError(f"Corrupt playback record for {content_id}: {e}") from e

    def put(self, content_id: str, config: PlaybackConfig) -> None:
        """Store the config for a title and mark it most recently used."""
        key = storage_key(content_id)
        self.write(key, config.to_json())

        try:
            self._touch(key)
        except (PlaybackStoreError, OSError) as e:
            logger.warning(f"Failed to update playback state index: {e}")

    def delete(self, content_id: str) -> None:
        key = storage_key(content_id)
        self.remove(key)
        index = [k for k in self._read_index() if k != key]
        self.write(INDEX_KEY, json.dumps(index))

    def recent_keys(self) -> List[str]:
        """Storage keys, most recently written first."""
        return self._read_index()

    def _read_index(self) -> List[str]:
        raw = self.read(INDEX_KEY)
        if not raw:
            return []
        try:
            index = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Playback state index is corrupt, starting a new one")
            return []
        if not isinstance(index, list):
            return []
        return [str(k) for k in index]

    def _touch(self, key: str) -> None:
        index = [k for k in self._read_index() if k != key]
        index.insert(0, key)

        if self.max_records > 0 and len(index) > self.max_records:
            evicted = index[self.max_records:]
            index = index[: self.max_records]
            for old_key in evicted:
                self.remove(old_key)
            logger.debug(f"Evicted {len(evicted)} old playback records")

        self.write(INDEX_KEY, json.dumps(index))


class MemoryPlaybackStore(PlaybackConfigStore):
    """In-process store, lost on exit."""

    def __init__(self, max_records: int = DEFAULT_MAX_RECORDS):
        super().__init__(max_records)
        self._data: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFilePlaybackStore(PlaybackConfigStore):
    """
    Store backed by a single JSON file.

    The file is read once at start-up and rewritten atomically on every
    change. An unreadable file is treated as empty.
    """

    def __init__(self, path: str | Path, max_records: int = DEFAULT_MAX_RECORDS):
        super().__init__(max_records)
        self.path = Path(path)
        self._lock = Lock()
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable playback state file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed playback state file {self.path}")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._flush()


def create_store(
    backend: str = "memory",
    path: Optional[str] = None,
    database_url: Optional[str] = None,
    max_records: int = DEFAULT_MAX_RECORDS,
) -> PlaybackConfigStore:
    """
    Create a playback store for a configured backend name.

    Args:
        backend: memory, file or sql.
        path: JSON file path for the file backend.
        database_url: SQLAlchemy URL for the sql backend.
        max_records: Number of titles to keep.
    """
    if backend == "memory":
        return MemoryPlaybackStore(max_records=max_records)
    if backend == "file":
        return JsonFilePlaybackStore(path or "data/playback_state.json", max_records=max_records)
    if backend == "sql":
        from chilltv.playback.sql_store import SqlPlaybackStore

        return SqlPlaybackStore(database_url or "sqlite:///./chilltv.db", max_records=max_records)

    raise ValueError(f"Unknown playback store backend: {backend}")
