"""
chilltv Playout Engine

Linear "live channel" scheduling.

Features:
- Contiguous back-to-back schedule from the stored catalog
- Now-playing resolution with progress tracking
- Manual override (select a program, skip to next with wraparound)
- Program guide with live/upcoming/ended status
"""

from chilltv.playout.builder import build_schedule, effective_duration, top_of_hour
from chilltv.playout.engine import SchedulingEngine
from chilltv.playout.override import OverrideController
from chilltv.playout.resolver import (
    build_guide,
    get_scheduled_program,
    get_upcoming,
    resolve_current,
    time_until_next,
)
from chilltv.playout.state import (
    ActiveProgramView,
    GuideEntry,
    GuideStatus,
    PlaybackSelection,
    ScheduledProgram,
)

__all__ = [
    # Builder
    "build_schedule",
    "effective_duration",
    "top_of_hour",
    # Resolver
    "build_guide",
    "get_scheduled_program",
    "get_upcoming",
    "resolve_current",
    "time_until_next",
    # Override
    "OverrideController",
    # Engine
    "SchedulingEngine",
    # State
    "ActiveProgramView",
    "GuideEntry",
    "GuideStatus",
    "PlaybackSelection",
    "ScheduledProgram",
]
