"""
Schedule builder for the linear channel.

Lays catalog items out back-to-back from an anchor instant.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List

from chilltv.catalog.models import DEFAULT_DURATION, CatalogItem
from chilltv.playout.state import ScheduledProgram

logger = logging.getLogger(__name__)


def top_of_hour(now: datetime) -> datetime:
    """Truncate ``now`` to the start of its hour."""
    return now.replace(minute=0, second=0, microsecond=0)


def effective_duration(item: CatalogItem, default_duration: int = DEFAULT_DURATION) -> int:
    """
    Slot length in seconds for an item.

    Zero or negative durations are coerced to ``default_duration`` so no
    slot is ever zero-width.
    """
    if item.duration and item.duration > 0:
        return int(item.duration)
    return default_duration


def build_schedule(
    items: Iterable[CatalogItem],
    anchor_time: datetime,
    default_duration: int = DEFAULT_DURATION,
) -> List[ScheduledProgram]:
    """
    Build a contiguous schedule from catalog items.

    Items air in the order given; nothing is sorted. Each program starts
    where the previous one ends, so ``schedule[i].end_time ==
    schedule[i + 1].start_time`` always holds.

    Args:
        items: Catalog items in air order.
        anchor_time: Start of the first program.
        default_duration: Seconds used for items with no usable duration.

    Returns:
        List of ScheduledProgram (empty for an empty catalog).
    """
    schedule: List[ScheduledProgram] = []
    cursor = anchor_time

    for index, item in enumerate(items):
        duration = timedelta(seconds=effective_duration(item, default_duration))
        program = ScheduledProgram(
            item=item,
            start_time=cursor,
            end_time=cursor + duration,
            index=index,
        )
        schedule.append(program)
        cursor = program.end_time

    if schedule:
        logger.debug(
            f"Built schedule of {len(schedule)} programs "
            f"from {anchor_time.isoformat()} to {cursor.isoformat()}"
        )
    else:
        logger.debug("Built empty schedule")

    return schedule
