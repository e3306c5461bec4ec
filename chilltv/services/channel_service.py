"""
Channel service.

Runs the live channel: fetches the catalog, ticks the scheduling engine
once per tick interval and flushes due playback writes on the same beat.
"""

import asyncio
import logging
import time
from typing import List, Optional

from chilltv.catalog.client import CatalogClient, CatalogFetchError, search_items
from chilltv.catalog.models import CatalogItem
from chilltv.catalog.stream import build_stream_url
from chilltv.config import ChillTVConfig
from chilltv.playback.persister import PlaybackStatePersister
from chilltv.playback.store import create_store
from chilltv.playout.engine import SchedulingEngine
from chilltv.playout.state import ActiveProgramView, ScheduledProgram

logger = logging.getLogger(__name__)


class ChannelService:
    """
    Owns the engine, the catalog client and the playback persister for the
    lifetime of the application.

    Usage:
        service = ChannelService.from_config(get_config())
        await service.start()
        ...
        await service.stop()
    """

    def __init__(
        self,
        catalog_client: CatalogClient,
        engine: SchedulingEngine,
        persister: PlaybackStatePersister,
        stream_host: str,
        tick_interval: float = 1.0,
        refresh_interval: float = 0,
        guide_size: int = 10,
    ):
        self.catalog_client = catalog_client
        self.engine = engine
        self.persister = persister
        self.stream_host = stream_host
        self.tick_interval = tick_interval
        self.refresh_interval = refresh_interval
        self.guide_size = guide_size

        self.items: List[CatalogItem] = []
        self.last_error: Optional[str] = None
        self._last_refresh: Optional[float] = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, config: ChillTVConfig) -> "ChannelService":
        """Wire a service from application configuration."""
        store = create_store(
            backend=config.playback.backend,
            path=config.playback.storage_path,
            database_url=config.playback.database_url,
            max_records=config.playback.max_stored_states,
        )
        return cls(
            catalog_client=CatalogClient(
                base_url=config.catalog.base_url,
                endpoint=config.catalog.endpoint,
                timeout=config.catalog.timeout,
                default_duration=config.catalog.default_duration,
            ),
            engine=SchedulingEngine(
                default_duration=config.catalog.default_duration,
                anchor=config.scheduling.anchor,
            ),
            persister=PlaybackStatePersister(
                store,
                debounce_seconds=config.playback.debounce_seconds,
            ),
            stream_host=config.streaming.stream_host,
            tick_interval=config.scheduling.tick_interval,
            refresh_interval=config.scheduling.refresh_interval,
            guide_size=config.scheduling.guide_size,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------ lifecycle

    async def start(self) -> None:
        """Load the catalog and start ticking."""
        if self.is_running:
            return

        await self.refresh()
        self.tick()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Channel service started (tick every {self.tick_interval}s)")

    async def stop(self) -> None:
        """Stop ticking and write any pending playback state."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.persister.flush()
        logger.info("Channel service stopped")

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            try:
                if self._refresh_due():
                    await self.refresh()
                self.tick()
            except Exception:
                logger.exception("Error in channel tick loop")

    def _refresh_due(self) -> bool:
        if not self.refresh_interval or self._last_refresh is None:
            return False
        return time.monotonic() - self._last_refresh >= self.refresh_interval

    # ----------------------------------------------------------- operations

    async def refresh(self) -> bool:
        """
        Refetch the catalog and rebuild the schedule.

        A failed fetch leaves the current schedule untouched, and an
        unchanged catalog keeps the existing timeline.

        Returns:
            True if the catalog was loaded (the schedule is current).
        """
        self._last_refresh = time.monotonic()
        try:
            items = await self.catalog_client.fetch_items()
        except CatalogFetchError as e:
            self.last_error = str(e)
            logger.error(f"Could not load the channel content: {e}")
            return False

        self.last_error = None
        if self.engine.has_schedule and items == self.items:
            logger.debug("Catalog unchanged, keeping the current schedule")
            return True

        self.items = items
        self.engine.rebuild(items)
        return True

    def tick(self) -> Optional[ActiveProgramView]:
        """One beat: recompute now-playing and flush due playback writes."""
        view = self.engine.tick()
        self.persister.flush_due()
        return view

    def stream_url(self, program: Optional[ScheduledProgram] = None) -> Optional[str]:
        """Stream URL for ``program`` or for whatever is on now."""
        if program is None:
            current = self.engine.current
            if current is None:
                return None
            program = current.program
        return build_stream_url(program.item, self.stream_host)

    def search(self, title: str) -> List[CatalogItem]:
        """Search the loaded catalog by title."""
        return search_items(self.items, title)
