"""
Playback state persister.

Reads and writes the per-title PlaybackConfig, coalescing the flood of
player notifications (time updates fire several times a second) into at
most one write per title per debounce window.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from chilltv.playback.models import PlaybackConfig
from chilltv.playback.store import PlaybackConfigStore, PlaybackStoreError, storage_key

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0


@dataclass
class PendingSave:
    """Changes waiting for their debounce window to close."""

    config: PlaybackConfig
    due_at: float


class PlaybackStatePersister:
    """
    Debounced, de-duplicated access to a PlaybackConfigStore.

    The debounce window opens with the first change for a title and is not
    pushed back by later changes, so a title that keeps changing is still
    written once per window. A write whose serialized config matches the
    last one written for that title is skipped.
    """

    def __init__(
        self,
        store: PlaybackConfigStore,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._clock = clock
        self._known: Dict[str, PlaybackConfig] = {}
        self._last_written: Dict[str, str] = {}
        self._pending: Dict[str, PendingSave] = {}

    # ---------------------------------------------------------------- read

    def load(self, content_id: str) -> Optional[PlaybackConfig]:
        """
        Load the stored config for a title.

        Returns:
            The config, or None when nothing usable is stored. Corrupt
            records and storage errors are logged and treated as absent.
        """
        try:
            config = self.store.get(content_id)
        except (PlaybackStoreError, OSError) as e:
            logger.warning(f"Discarding unreadable playback state for {content_id}: {e}")
            config = None

        if config is None:
            self._known.pop(content_id, None)
            self._last_written.pop(content_id, None)
            return None

        self._known[content_id] = config
        self._last_written[content_id] = config.to_json()
        return config

    def load_or_default(self, content_id: str) -> PlaybackConfig:
        return self.load(content_id) or PlaybackConfig.defaults()

    # --------------------------------------------------------------- write

    def save(self, content_id: str, config: PlaybackConfig) -> bool:
        """
        Write a config now, superseding any pending changes for the title.

        Returns:
            True if the store was written, False if the write was skipped
            as a duplicate or failed.
        """
        self._pending.pop(content_id, None)
        return self._write(content_id, config)

    def schedule_save(
        self,
        content_id: str,
        now: Optional[float] = None,
        **changes: Any,
    ) -> PlaybackConfig:
        """
        Merge partial changes into the title's config and queue a write.

        Args:
            content_id: Title being played.
            now: Current monotonic time (defaults to the clock).
            **changes: PlaybackConfig fields to change.

        Returns:
            The merged config that will be written.

        Raises:
            ValueError: For unknown field names or invalid values.
        """
        unknown = set(changes) - set(PlaybackConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown playback fields: {', '.join(sorted(unknown))}")

        now = self._clock() if now is None else now
        pending = self._pending.get(content_id)
        base = pending.config if pending else self._current(content_id)
        merged = base.merged(**changes)

        due_at = pending.due_at if pending else now + self.debounce_seconds
        self._pending[content_id] = PendingSave(config=merged, due_at=due_at)
        return merged

    def flush_due(self, now: Optional[float] = None) -> int:
        """
        Write every pending config whose debounce window has closed.

        Returns:
            Number of records actually written.
        """
        now = self._clock() if now is None else now
        due = [cid for cid, pending in self._pending.items() if pending.due_at <= now]

        written = 0
        for content_id in due:
            pending = self._pending.pop(content_id)
            if self._write(content_id, pending.config):
                written += 1
        return written

    def flush(self) -> int:
        """Write every pending config immediately (shutdown, player closed)."""
        pending_ids = list(self._pending)
        written = 0
        for content_id in pending_ids:
            pending = self._pending.pop(content_id)
            if self._write(content_id, pending.config):
                written += 1
        if written:
            logger.debug(f"Flushed {written} pending playback records")
        return written

    def pending_ids(self) -> List[str]:
        return list(self._pending)

    # ------------------------------------------------------------ internal

    def _current(self, content_id: str) -> PlaybackConfig:
        if content_id in self._known:
            return self._known[content_id]
        return self.load_or_default(content_id)

    def _still_stored(self, content_id: str) -> bool:
        # The store may have evicted the record since it was last written
        try:
            return storage_key(content_id) in self.store.recent_keys()
        except (PlaybackStoreError, OSError):
            return False

    def _write(self, content_id: str, config: PlaybackConfig) -> bool:
        serialized = config.to_json()
        self._known[content_id] = config

        if self._last_written.get(content_id) == serialized and self._still_stored(content_id):
            return False

        try:
            self.store.put(content_id, config)
        except (PlaybackStoreError, OSError) as e:
            logger.error(f"Failed to save playback state for {content_id}: {e}")
            return False

        self._last_written[content_id] = serialized
        return True
