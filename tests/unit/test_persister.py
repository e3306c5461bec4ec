"""
Unit tests for the playback config model and the debounced persister.
"""

import pytest
from pydantic import ValidationError

from chilltv.playback.models import PLAYBACK_SCHEMA_VERSION, PlaybackConfig
from chilltv.playback.persister import PlaybackStatePersister
from chilltv.playback.store import MemoryPlaybackStore, PlaybackStoreError, storage_key


class CountingStore(MemoryPlaybackStore):
    """Memory store that counts title writes."""

    def __init__(self):
        super().__init__()
        self.puts = []

    def put(self, content_id, config):
        self.puts.append((content_id, config))
        super().put(content_id, config)


class BrokenStore(MemoryPlaybackStore):
    def put(self, content_id, config):
        raise PlaybackStoreError("disk full")


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def debounced(store, monotonic) -> PlaybackStatePersister:
    return PlaybackStatePersister(store, debounce_seconds=1.0, clock=monotonic)


@pytest.mark.unit
class TestPlaybackConfig:
    """Tests for the PlaybackConfig model."""

    def test_defaults(self):
        config = PlaybackConfig.defaults()

        assert config.position_seconds == 0
        assert config.volume == 1.0
        assert config.muted is False
        assert config.playback_rate == 1.0
        assert config.subtitle_id is None
        assert config.schema_version == PLAYBACK_SCHEMA_VERSION

    def test_merged(self):
        config = PlaybackConfig.defaults().merged(position_seconds=12.5, muted=True)

        assert config.position_seconds == 12.5
        assert config.muted is True
        assert config.volume == 1.0

    @pytest.mark.parametrize(
        "changes",
        [{"volume": 1.5}, {"volume": -0.1}, {"playback_rate": 0}, {"position_seconds": -1}],
    )
    def test_rejects_invalid_values(self, changes):
        with pytest.raises(ValidationError):
            PlaybackConfig.defaults().merged(**changes)

    def test_equal_configs_serialize_identically(self):
        first = PlaybackConfig(volume=0.5, quality_label="720p")
        second = PlaybackConfig(quality_label="720p", volume=0.5)

        assert first.to_json() == second.to_json()

    def test_unknown_stored_fields_are_ignored(self):
        config = PlaybackConfig.from_json('{"position_seconds": 5, "legacy": true}')

        assert config.position_seconds == 5


@pytest.mark.unit
class TestLoadSave:
    """Tests for load and save."""

    def test_round_trip(self, debounced):
        config = PlaybackConfig(
            position_seconds=321.5,
            volume=0.4,
            muted=True,
            quality_label="1080p",
            language_code="fr",
            subtitle_id="sub-2",
            audio_track_id="a1",
            playback_rate=1.25,
        )

        assert debounced.save("movie-1", config) is True
        assert debounced.load("movie-1") == config

    def test_never_played(self, debounced):
        assert debounced.load("unknown") is None
        assert debounced.load_or_default("unknown") == PlaybackConfig.defaults()

    def test_corrupt_record_is_absent(self, debounced, store):
        store.write(storage_key("movie-1"), "{not json")

        assert debounced.load("movie-1") is None

    def test_invalid_record_is_absent(self, debounced, store):
        store.write(storage_key("movie-1"), '{"volume": 7}')

        assert debounced.load("movie-1") is None

    def test_identical_save_is_skipped(self, debounced, store):
        config = PlaybackConfig(position_seconds=10)

        assert debounced.save("movie-1", config) is True
        assert debounced.save("movie-1", PlaybackConfig(position_seconds=10)) is False
        assert len(store.puts) == 1

    def test_load_primes_duplicate_check(self, store, monotonic):
        PlaybackStatePersister(store).save("movie-1", PlaybackConfig(volume=0.3))
        fresh = PlaybackStatePersister(store, clock=monotonic)

        fresh.load("movie-1")

        assert fresh.save("movie-1", PlaybackConfig(volume=0.3)) is False
        assert len(store.puts) == 1

    def test_evicted_title_is_written_again(self, monotonic):
        store = MemoryPlaybackStore(max_records=1)
        persister = PlaybackStatePersister(store, clock=monotonic)
        config = PlaybackConfig(position_seconds=42)

        persister.save("a", config)
        persister.save("b", PlaybackConfig(position_seconds=7))

        assert persister.save("a", config) is True
        assert persister.load("a") == config

    def test_load_after_eviction_forgets_last_write(self, monotonic):
        store = MemoryPlaybackStore(max_records=1)
        persister = PlaybackStatePersister(store, clock=monotonic)
        config = PlaybackConfig(volume=0.4)
        persister.save("a", config)
        persister.save("b", PlaybackConfig())

        assert persister.load("a") is None
        assert persister.save("a", config) is True
        assert store.get("a") == config

    def test_store_failure_is_reported_not_raised(self, monotonic):
        persister = PlaybackStatePersister(BrokenStore(), clock=monotonic)

        assert persister.save("movie-1", PlaybackConfig(position_seconds=1)) is False


@pytest.mark.unit
class TestDebounce:
    """Tests for schedule_save, flush_due and flush."""

    def test_changes_wait_for_window(self, debounced, store, monotonic):
        debounced.schedule_save("movie-1", position_seconds=1.0)

        assert debounced.flush_due() == 0
        assert store.puts == []

        monotonic.advance(1.0)
        assert debounced.flush_due() == 1
        assert debounced.load("movie-1").position_seconds == 1.0

    def test_burst_is_coalesced(self, debounced, store, monotonic):
        for second in range(4):
            debounced.schedule_save("movie-1", position_seconds=float(second))
            monotonic.advance(0.2)
        debounced.schedule_save("movie-1", volume=0.5)

        monotonic.advance(0.3)
        debounced.flush_due()

        assert len(store.puts) == 1
        written = store.puts[0][1]
        assert written.position_seconds == 3.0
        assert written.volume == 0.5

    def test_continuous_updates_still_flush(self, debounced, store, monotonic):
        """The window is not pushed back by later changes."""
        for tick in range(30):
            debounced.schedule_save("movie-1", position_seconds=tick * 0.25)
            monotonic.advance(0.25)
            debounced.flush_due()

        assert len(store.puts) >= 7

    def test_partial_changes_merge_with_stored(self, debounced, monotonic):
        debounced.save("movie-1", PlaybackConfig(volume=0.2, quality_label="480p"))

        merged = debounced.schedule_save("movie-1", position_seconds=40)

        assert merged.volume == 0.2
        assert merged.quality_label == "480p"
        assert merged.position_seconds == 40

    def test_unknown_field(self, debounced):
        with pytest.raises(ValueError, match="Unknown playback fields"):
            debounced.schedule_save("movie-1", brightness=3)

    def test_invalid_value(self, debounced):
        with pytest.raises(ValueError):
            debounced.schedule_save("movie-1", volume=4)

    def test_titles_are_independent(self, debounced, store, monotonic):
        debounced.schedule_save("movie-1", position_seconds=1)
        monotonic.advance(0.5)
        debounced.schedule_save("movie-2", position_seconds=2)
        monotonic.advance(0.5)

        assert debounced.flush_due() == 1
        assert debounced.pending_ids() == ["movie-2"]

    def test_flush_writes_everything(self, debounced, store):
        debounced.schedule_save("movie-1", position_seconds=1)
        debounced.schedule_save("movie-2", position_seconds=2)

        assert debounced.flush() == 2
        assert debounced.pending_ids() == []

    def test_save_supersedes_pending(self, debounced, store, monotonic):
        debounced.schedule_save("movie-1", position_seconds=1)
        debounced.save("movie-1", PlaybackConfig(position_seconds=99))

        monotonic.advance(5)

        assert debounced.flush_due() == 0
        assert debounced.load("movie-1").position_seconds == 99

    def test_unchanged_pending_write_is_skipped(self, debounced, store, monotonic):
        debounced.save("movie-1", PlaybackConfig(position_seconds=5))

        debounced.schedule_save("movie-1", position_seconds=5)
        monotonic.advance(1)

        assert debounced.flush_due() == 0
        assert len(store.puts) == 1
