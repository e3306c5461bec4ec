"""
Override controller.

Lets the user jump to any program ("play this now") or skip ahead,
superseding the natural schedule until another selection replaces it.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from chilltv.playout.state import PlaybackSelection, ScheduledProgram

logger = logging.getLogger(__name__)

NowPlayingListener = Callable[[ScheduledProgram], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OverrideController:
    """
    Owns the override selection.

    The selection never expires on its own: once a title is chosen the
    channel stays on it until a new selection or clear_override().
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._selection: Optional[PlaybackSelection] = None
        self._listeners: List[NowPlayingListener] = []

    @property
    def selection(self) -> Optional[PlaybackSelection]:
        return self._selection

    @property
    def is_active(self) -> bool:
        return self._selection is not None

    def add_listener(self, listener: NowPlayingListener) -> None:
        """Register a callback fired with the program on every selection."""
        self._listeners.append(listener)

    def remove_listener(self, listener: NowPlayingListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def select_program(
        self,
        program: ScheduledProgram,
        now: Optional[datetime] = None,
    ) -> PlaybackSelection:
        """
        Make ``program`` the current program starting now.

        Any previous selection is simply replaced.
        """
        activation_time = now or self._clock()
        self._selection = PlaybackSelection(program=program, activation_time=activation_time)

        logger.info(f"Now playing: {program.title} (override at {activation_time.isoformat()})")
        self._notify(program)
        return self._selection

    def clear_override(self) -> None:
        """Return to the natural schedule."""
        if self._selection is not None:
            logger.info(f"Override cleared ({self._selection.program.title})")
        self._selection = None

    def skip_to_next(
        self,
        schedule: Sequence[ScheduledProgram],
        current: Optional[ScheduledProgram],
        now: Optional[datetime] = None,
    ) -> Optional[ScheduledProgram]:
        """
        Select the program after ``current``, wrapping to the first one.

        On a one-program schedule this re-selects the same program.

        Returns:
            The newly selected program, or None (and no change) when the
            schedule is empty or ``current`` is unknown.
        """
        if not schedule or current is None:
            return None

        index = next((i for i, p in enumerate(schedule) if p.id == current.id), None)
        if index is None:
            logger.warning(f"Cannot skip: program {current.id} is no longer scheduled")
            return None

        next_program = schedule[(index + 1) % len(schedule)]
        self.select_program(next_program, now=now)
        return next_program

    def _notify(self, program: ScheduledProgram) -> None:
        for listener in list(self._listeners):
            try:
                listener(program)
            except Exception as e:
                logger.warning(f"Now-playing listener failed: {e}")
