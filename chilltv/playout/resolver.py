"""
Now-playing resolution.

Everything here is a pure function of (schedule, now, override): no hidden
state, safe to call on every tick.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from chilltv.playout.state import (
    ActiveProgramView,
    GuideEntry,
    GuideStatus,
    PlaybackSelection,
    ScheduledProgram,
    find_program,
)


def _progress(elapsed: float, duration: float) -> float:
    if duration <= 0:
        return 1.0
    return min(max(elapsed / duration, 0.0), 1.0)


def get_scheduled_program(
    schedule: Sequence[ScheduledProgram],
    now: datetime,
) -> Optional[ScheduledProgram]:
    """
    Get the program whose natural slot contains ``now``.

    Slots are half-open, so at an exact boundary the later program wins.
    Should two slots ever overlap, the earliest-starting one is returned.
    """
    matches = [program for program in schedule if program.contains(now)]
    if not matches:
        return None
    return min(matches, key=lambda p: p.start_time)


def resolve_current(
    schedule: Sequence[ScheduledProgram],
    now: datetime,
    override: Optional[PlaybackSelection] = None,
) -> Optional[ActiveProgramView]:
    """
    Determine what is on right now.

    An override always wins over the natural schedule; its progress is
    measured from the moment it was activated and capped at 100%. An
    override whose item is no longer in the schedule resolves to nothing.

    Args:
        schedule: Current schedule.
        now: Wall-clock instant to resolve.
        override: Optional user selection.

    Returns:
        ActiveProgramView, or None when nothing is airing.
    """
    if override is not None:
        program = find_program(schedule, override.program.id)
        if program is None:
            return None

        elapsed = max((now - override.activation_time).total_seconds(), 0.0)
        return ActiveProgramView(
            program=program,
            elapsed_seconds=min(elapsed, program.duration_seconds),
            progress_fraction=_progress(elapsed, program.duration_seconds),
            is_override=True,
        )

    program = get_scheduled_program(schedule, now)
    if program is None:
        return None

    elapsed = (now - program.start_time).total_seconds()
    return ActiveProgramView(
        program=program,
        elapsed_seconds=elapsed,
        progress_fraction=_progress(elapsed, program.duration_seconds),
    )


def get_upcoming(
    schedule: Sequence[ScheduledProgram],
    now: datetime,
    count: int = 10,
) -> List[ScheduledProgram]:
    """Get up to ``count`` programs that have not started yet, soonest first."""
    upcoming = [program for program in schedule if program.start_time > now]
    upcoming.sort(key=lambda p: p.start_time)
    return upcoming[:count]


def time_until_next(
    schedule: Sequence[ScheduledProgram],
    now: datetime,
) -> Optional[timedelta]:
    """
    Time until the next natural slot boundary.

    Returns:
        timedelta, or None when nothing is airing or coming up.
    """
    current = get_scheduled_program(schedule, now)
    if current is not None:
        return current.end_time - now

    upcoming = get_upcoming(schedule, now, count=1)
    if upcoming:
        return upcoming[0].start_time - now

    return None


def build_guide(
    schedule: Sequence[ScheduledProgram],
    now: datetime,
    current: Optional[ActiveProgramView] = None,
) -> List[GuideEntry]:
    """
    Label every program for the channel guide.

    The program currently on screen is LIVE (even when it is an override).
    A program whose own slot is open while an override is on screen is
    PREEMPTED. Programs starting after ``now`` are UPCOMING, the rest have
    ENDED.
    """
    live_id = current.program.id if current is not None else None

    entries = []
    for program in schedule:
        if program.id == live_id:
            status = GuideStatus.LIVE
        elif program.contains(now):
            status = GuideStatus.PREEMPTED
        elif program.start_time > now:
            status = GuideStatus.UPCOMING
        else:
            status = GuideStatus.ENDED
        entries.append(GuideEntry(program=program, status=status))
    return entries
