"""
chilltv Test Configuration

Shared fixtures and configuration for all tests.
"""

import json
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, List, Optional

import httpx
import pytest

from chilltv.catalog.client import CatalogClient
from chilltv.catalog.models import CatalogItem
from chilltv.playback.persister import PlaybackStatePersister
from chilltv.playback.player import PlayerEvent
from chilltv.playback.store import MemoryPlaybackStore

# Fixed wall-clock instant used as the channel anchor in tests
ANCHOR = datetime(2024, 5, 1, 20, 0, 0, tzinfo=timezone.utc)


# ============ Clock Fixtures ============


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime = ANCHOR):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeMonotonic:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def anchor() -> datetime:
    return ANCHOR


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


# ============ Sample Data Fixtures ============


@pytest.fixture
def sample_movie_records() -> List[dict]:
    """Records as the indexer API returns them."""
    return [
        {
            "tmdb_id": 603,
            "title": "The Matrix",
            "movieDuration": 8160,
            "classification": "R",
            "torrent_hash": "abc123",
            "resource_index": 0,
        },
        {
            "tmdb_id": 27205,
            "title": "Inception",
            "movieDuration": 8880,
            "classification": "PG-13",
            "torrent_hash": "def456",
            "resource_index": 2,
        },
        {
            "tmdb_id": 129,
            "title": "Spirited Away",
            "movieDuration": 0,
            "classification": "PG",
            "torrent_hash": "ghi789",
            "resource_index": 1,
        },
    ]


@pytest.fixture
def short_items() -> List[CatalogItem]:
    """Two short items: a (1800s) then b (3600s)."""
    return [
        CatalogItem(id="a", title="Alpha", duration=1800, torrent_hash="ha", resource_index=0),
        CatalogItem(id="b", title="Bravo", duration=3600, torrent_hash="hb", resource_index=1),
    ]


@pytest.fixture
def three_items() -> List[CatalogItem]:
    return [
        CatalogItem(id="a", title="Alpha", duration=600),
        CatalogItem(id="b", title="Bravo", duration=600),
        CatalogItem(id="c", title="Charlie", duration=600),
    ]


# ============ Catalog Fixtures ============


def mock_transport(payload=None, status_code: int = 200) -> httpx.MockTransport:
    """Transport that answers every request with ``payload`` as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def catalog_client(sample_movie_records) -> CatalogClient:
    return CatalogClient(
        base_url="https://indexer.test",
        transport=mock_transport(sample_movie_records),
    )


# ============ Playback Fixtures ============


@pytest.fixture
def memory_store() -> MemoryPlaybackStore:
    return MemoryPlaybackStore()


@pytest.fixture
def persister(memory_store, monotonic) -> PlaybackStatePersister:
    return PlaybackStatePersister(memory_store, debounce_seconds=1.0, clock=monotonic)


class FakePlayer:
    """In-memory PlayerAdapter that records what it was told to do."""

    def __init__(self, duration: float = 7200.0):
        self.duration = duration
        self.current_time = 0.0
        self.volume = 1.0
        self.muted = False
        self.rate = 1.0
        self.quality: Optional[str] = None
        self.audio_track: Optional[str] = None
        self.subtitle: Optional[str] = "unset"
        self.seeks: List[float] = []
        self.listeners: List[Callable[[PlayerEvent], None]] = []
        self.playing = False

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def seek(self, seconds: float) -> None:
        self.seeks.append(seconds)
        self.current_time = seconds

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    def set_playback_rate(self, rate: float) -> None:
        self.rate = rate

    def get_current_time(self) -> float:
        return self.current_time

    def get_duration(self) -> float:
        return self.duration

    def get_volume(self) -> float:
        return self.volume

    def is_muted(self) -> bool:
        return self.muted

    def get_playback_rate(self) -> float:
        return self.rate

    def select_audio_track(self, track_id: str) -> None:
        self.audio_track = track_id

    def select_quality(self, label: str) -> None:
        self.quality = label

    def select_subtitle(self, subtitle_id: Optional[str]) -> None:
        self.subtitle = subtitle_id

    def subscribe(self, listener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def emit(self, event: PlayerEvent) -> None:
        for listener in list(self.listeners):
            listener(event)


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


# ============ Temporary File Fixtures ============


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_file = temp_dir / "config.yaml"
    config_content = """
server:
  host: "127.0.0.1"
  port: 9000
  debug: true

catalog:
  base_url: "https://indexer.test"
  default_duration: 5400

playback:
  backend: "memory"
  debounce_seconds: 0.5

logging:
  level: "DEBUG"
"""
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def playback_state_file(temp_dir: Path) -> Path:
    path = temp_dir / "playback_state.json"
    path.write_text(json.dumps({}))
    return path


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables for each test."""
    # Save current environment
    original_env = os.environ.copy()

    # Remove chilltv-specific vars
    for key in list(os.environ.keys()):
        if key.startswith("CHILLTV_"):
            del os.environ[key]

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


# ============ Markers ============


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
