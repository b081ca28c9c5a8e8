"""Conflict-free slot selection for new activities."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from calendar_engine.schema import Event, utcnow
from calendar_engine.windows import day_start

DEFAULT_LOOKAHEAD_DAYS = 7
DEFAULT_SLOT_MINUTES = 60


def overlaps(start: datetime, end: datetime, occupied_start: datetime, occupied_end: datetime) -> bool:
    return occupied_start < end and start < occupied_end


def occupied_intervals(events: Iterable[Event]) -> list[tuple[datetime, datetime]]:
    return [(event.start, event.end) for event in events]


def find_next_available_slot(
    reference_date: date,
    preferred_time: timedelta,
    occupied: list[tuple[datetime, datetime]],
    now: Optional[datetime] = None,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> datetime:
    """Return the first start at ``preferred_time`` whose block is free.

    Days are scanned one at a time from the first candidate that is not in
    the past. When every day in the look-ahead is busy, the first candidate
    is returned unchanged.
    """

    now = now or utcnow()
    candidate = day_start(reference_date) + preferred_time
    if candidate <= now:
        candidate += timedelta(days=1)

    for offset in range(lookahead_days):
        start = candidate + timedelta(days=offset)
        end = start + timedelta(minutes=slot_minutes)
        if not any(overlaps(start, end, busy_start, busy_end) for busy_start, busy_end in occupied):
            return start

    return candidate
