"""
Playout state for the linear channel.

Scheduled programs, the user's override selection, and the computed
"now playing" view.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from chilltv.catalog.models import CatalogItem


class GuideStatus(Enum):
    """Status of a program in the channel guide."""

    LIVE = "live"
    PREEMPTED = "preempted"  # slot is open but an override is on screen
    UPCOMING = "upcoming"
    ENDED = "ended"


@dataclass(frozen=True)
class ScheduledProgram:
    """
    A catalog item placed on the channel timeline.

    The slot is half-open: it airs at ``start_time`` and is over at
    ``end_time``.
    """

    item: CatalogItem
    start_time: datetime
    end_time: datetime
    index: int = 0

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def title(self) -> str:
        return self.item.title

    @property
    def duration(self) -> timedelta:
        """Slot length."""
        return self.end_time - self.start_time

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    def contains(self, at_time: datetime) -> bool:
        """Check whether the slot is airing at ``at_time``."""
        return self.start_time <= at_time < self.end_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            **self.item.to_dict(),
            "index": self.index,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
        }


@dataclass(frozen=True)
class PlaybackSelection:
    """
    A program the user chose to watch now, outside its natural slot.

    Progress for an override is measured from ``activation_time``.
    """

    program: ScheduledProgram
    activation_time: datetime


@dataclass(frozen=True)
class ActiveProgramView:
    """What is on right now. Recomputed every tick, never stored."""

    program: ScheduledProgram
    elapsed_seconds: float
    progress_fraction: float
    is_override: bool = False

    @property
    def progress_percent(self) -> float:
        return self.progress_fraction * 100

    @property
    def remaining_seconds(self) -> float:
        return max(0.0, self.program.duration_seconds - self.elapsed_seconds)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "program": self.program.to_dict(),
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "progress_fraction": round(self.progress_fraction, 6),
            "progress_percent": round(self.progress_percent, 2),
            "remaining_seconds": round(self.remaining_seconds, 3),
            "is_override": self.is_override,
        }


@dataclass(frozen=True)
class GuideEntry:
    """One row of the program guide."""

    program: ScheduledProgram
    status: GuideStatus

    def to_dict(self) -> Dict[str, Any]:
        return {**self.program.to_dict(), "status": self.status.value}


def find_program(schedule, item_id: str) -> Optional[ScheduledProgram]:
    """Look up a program in a schedule by catalog item id."""
    for program in schedule:
        if program.id == item_id:
            return program
    return None
