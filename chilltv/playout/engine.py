"""
Scheduling engine.

Owns the channel schedule and the override selection, and exposes the
tick/select/skip operations the rest of the application drives.
"""

import logging
from datetime import datetime
from threading import RLock
from typing import Callable, List, Optional, Sequence, Tuple, Union

from chilltv.catalog.models import DEFAULT_DURATION, CatalogItem
from chilltv.playout.builder import build_schedule, top_of_hour
from chilltv.playout.override import NowPlayingListener, OverrideController, utc_now
from chilltv.playout.resolver import (
    build_guide,
    get_upcoming,
    resolve_current,
    time_until_next,
)
from chilltv.playout.state import (
    ActiveProgramView,
    GuideEntry,
    PlaybackSelection,
    ScheduledProgram,
    find_program,
)

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """
    Linear channel built from a catalog.

    The schedule is always replaced as a whole tuple and read together with
    the override under one lock, so a tick never sees a half-built schedule
    or a half-assigned selection.

    Usage:
        engine = SchedulingEngine(items)
        view = engine.tick()
        engine.select("movie-42")
        engine.skip_next()
    """

    def __init__(
        self,
        catalog: Optional[Sequence[CatalogItem]] = None,
        clock: Callable[[], datetime] = utc_now,
        default_duration: int = DEFAULT_DURATION,
        anchor: str = "top_of_hour",
        anchor_time: Optional[datetime] = None,
    ):
        self._clock = clock
        self._default_duration = default_duration
        self._anchor = anchor
        self._anchor_time: Optional[datetime] = None
        self._lock = RLock()
        self._schedule: Tuple[ScheduledProgram, ...] = ()
        self._built = False
        self._current: Optional[ActiveProgramView] = None
        self.overrides = OverrideController(clock=clock)

        if catalog is not None:
            self.rebuild(catalog, anchor_time=anchor_time)

    # ------------------------------------------------------------ schedule

    def _anchor_for(self, now: datetime) -> datetime:
        if self._anchor == "now":
            return now
        return top_of_hour(now)

    def rebuild(
        self,
        catalog: Sequence[CatalogItem],
        anchor_time: Optional[datetime] = None,
    ) -> Tuple[ScheduledProgram, ...]:
        """
        Rebuild the schedule from a freshly fetched catalog.

        The timeline keeps the anchor of the first build, so a changed
        catalog does not restart the channel. Pass ``anchor_time`` to move it.

        An existing override is kept; if its item disappeared from the
        catalog the channel resolves to nothing until a new selection.
        """
        anchor_time = anchor_time or self._anchor_time or self._anchor_for(self._clock())
        schedule = tuple(build_schedule(catalog, anchor_time, self._default_duration))

        with self._lock:
            self._schedule = schedule
            self._anchor_time = anchor_time
            self._built = True

        logger.info(f"Schedule rebuilt: {len(schedule)} programs anchored at {anchor_time.isoformat()}")
        return schedule

    @property
    def schedule(self) -> Tuple[ScheduledProgram, ...]:
        with self._lock:
            return self._schedule

    @property
    def has_schedule(self) -> bool:
        """Whether a catalog was ever loaded (an empty one counts)."""
        with self._lock:
            return self._built

    @property
    def override(self) -> Optional[PlaybackSelection]:
        with self._lock:
            return self.overrides.selection

    @property
    def current(self) -> Optional[ActiveProgramView]:
        """View computed by the last tick."""
        return self._current

    def _snapshot(self) -> Tuple[Tuple[ScheduledProgram, ...], Optional[PlaybackSelection]]:
        with self._lock:
            return self._schedule, self.overrides.selection

    # ---------------------------------------------------------------- tick

    def tick(self, now: Optional[datetime] = None) -> Optional[ActiveProgramView]:
        """Recompute what is on at ``now`` (defaults to the clock)."""
        now = now or self._clock()
        schedule, selection = self._snapshot()

        view = resolve_current(schedule, now, selection)

        previous = self._current
        previous_id = previous.program.id if previous else None
        current_id = view.program.id if view else None
        if previous_id != current_id:
            if view is None:
                logger.info("Channel idle: nothing airing")
            else:
                logger.info(f"Now airing: {view.program.title}")

        self._current = view
        return view

    # ----------------------------------------------------------- overrides

    def add_listener(self, listener: NowPlayingListener) -> None:
        self.overrides.add_listener(listener)

    def select(
        self,
        item: Union[CatalogItem, ScheduledProgram, str],
        now: Optional[datetime] = None,
    ) -> Optional[ScheduledProgram]:
        """
        Jump to a program by item, program or item id.

        Returns:
            The selected program, or None when it is not on the schedule.
        """
        item_id = item if isinstance(item, str) else item.id
        now = now or self._clock()

        with self._lock:
            program = find_program(self._schedule, item_id)
            if program is None:
                logger.warning(f"Cannot select {item_id}: not on the schedule")
                return None
            self.overrides.select_program(program, now=now)

        self.tick(now)
        return program

    def skip_next(self, now: Optional[datetime] = None) -> Optional[ScheduledProgram]:
        """Select the program after the one currently on, wrapping around."""
        now = now or self._clock()
        current = self.tick(now)

        with self._lock:
            program = self.overrides.skip_to_next(
                self._schedule,
                current.program if current else None,
                now=now,
            )

        if program is not None:
            self.tick(now)
        return program

    def clear_override(self, now: Optional[datetime] = None) -> None:
        """Return to the natural schedule."""
        with self._lock:
            self.overrides.clear_override()
        self.tick(now)

    # --------------------------------------------------------------- guide

    def guide(
        self,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[GuideEntry]:
        """Program guide with live/upcoming/ended labels."""
        now = now or self._clock()
        schedule, selection = self._snapshot()
        entries = build_guide(schedule, now, resolve_current(schedule, now, selection))
        return entries[:limit] if limit is not None else entries

    def upcoming(self, now: Optional[datetime] = None, count: int = 10) -> List[ScheduledProgram]:
        return get_upcoming(self.schedule, now or self._clock(), count)

    def time_until_next(self, now: Optional[datetime] = None):
        """Time until the next natural slot boundary, or None."""
        return time_until_next(self.schedule, now or self._clock())
