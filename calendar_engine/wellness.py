"""Monthly wellness metrics: mood distribution, streaks and category impact."""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

import numpy as np

from calendar_engine.errors import ValidationError
from calendar_engine.schema import Event, MoodEntry
from calendar_engine.windows import day_start

logger = logging.getLogger(__name__)

POSITIVE_THRESHOLD = 4
NEGATIVE_THRESHOLD = 2
UNCATEGORIZED = "Uncategorized"


@dataclass
class MoodStreaks:
    current_positive: int = 0
    longest_positive: int = 0
    current_negative: int = 0
    longest_negative: int = 0


@dataclass
class DayTrendPoint:
    day: date
    average_mood: Optional[float]
    entries: int


@dataclass
class CategoryMoodImpact:
    category_id: Optional[str]
    category_name: str
    category_color: Optional[str]
    average_mood: float
    event_count: int
    positive_count: int
    negative_count: int


@dataclass
class WellnessSummary:
    year: int
    month: int
    average_mood: float
    total_tracked_days: int
    tracking_coverage: float
    positive_days: int
    neutral_days: int
    negative_days: int
    mood_trend: list[DayTrendPoint]
    mood_distribution: dict[int, dict]
    streaks: MoodStreaks
    category_impacts: list[CategoryMoodImpact] = field(default_factory=list)
    best_day: Optional[MoodEntry] = None
    worst_day: Optional[MoodEntry] = None
    has_event_mood_data: bool = False


def _month_days(year: int, month: int) -> list[date]:
    first = date(year, month, 1)
    return [first + timedelta(days=offset) for offset in range(calendar.monthrange(year, month)[1])]


def calculate_streaks(days: list[date], entries: list[MoodEntry]) -> MoodStreaks:
    """Walk every day in order; an untracked day ends both streaks."""

    by_day: dict[date, MoodEntry] = {}
    for entry in entries:
        by_day.setdefault(entry.entry_date, entry)

    streaks = MoodStreaks()
    for day in days:
        entry = by_day.get(day)
        rating = entry.mood_rating if entry else None

        streaks.current_positive = streaks.current_positive + 1 if rating is not None and rating >= POSITIVE_THRESHOLD else 0
        streaks.current_negative = streaks.current_negative + 1 if rating is not None and rating <= NEGATIVE_THRESHOLD else 0

        streaks.longest_positive = max(streaks.longest_positive, streaks.current_positive)
        streaks.longest_negative = max(streaks.longest_negative, streaks.current_negative)

    return streaks


def build_day_trend(days: list[date], entries: list[MoodEntry]) -> list[DayTrendPoint]:
    by_day: dict[date, list[int]] = defaultdict(list)
    for entry in entries:
        by_day[entry.entry_date].append(entry.mood_rating)

    return [
        DayTrendPoint(
            day=day,
            average_mood=round(float(np.mean(by_day[day])), 2) if by_day.get(day) else None,
            entries=len(by_day.get(day, [])),
        )
        for day in days
    ]


def build_distribution(entries: list[MoodEntry]) -> dict[int, dict]:
    total = len(entries)
    distribution = {}
    for rating in range(1, 6):
        count = sum(1 for entry in entries if entry.mood_rating == rating)
        distribution[rating] = {"count": count, "percentage": round(count / total, 4) if total else 0.0}
    return distribution


def build_category_impacts(events: list[Event]) -> list[CategoryMoodImpact]:
    """Mood impact per category id over events that carry a rating."""

    grouped: dict[Optional[str], list[Event]] = defaultdict(list)
    for event in events:
        if event.mood_rating is not None:
            grouped[event.category_id].append(event)

    impacts = []
    for category_id, rated in grouped.items():
        first = rated[0]
        ratings = [event.mood_rating for event in rated]
        impacts.append(
            CategoryMoodImpact(
                category_id=category_id,
                category_name=first.category_name or UNCATEGORIZED,
                category_color=first.category_color,
                average_mood=round(float(np.mean(ratings)), 2),
                event_count=len(rated),
                positive_count=sum(1 for r in ratings if r >= POSITIVE_THRESHOLD),
                negative_count=sum(1 for r in ratings if r <= NEGATIVE_THRESHOLD),
            )
        )

    return sorted(impacts, key=lambda impact: (-impact.average_mood, -impact.event_count))


def build_wellness_summary(year: int, month: int, entries: list[MoodEntry], events: list[Event]) -> WellnessSummary:
    days = _month_days(year, month)
    ordered = sorted(entries, key=lambda entry: entry.entry_date)
    tracked = len(ordered)

    return WellnessSummary(
        year=year,
        month=month,
        average_mood=round(float(np.mean([e.mood_rating for e in ordered])), 2) if ordered else 0.0,
        total_tracked_days=tracked,
        tracking_coverage=round(tracked / len(days), 4),
        positive_days=sum(1 for e in ordered if e.mood_rating >= POSITIVE_THRESHOLD),
        neutral_days=sum(1 for e in ordered if e.mood_rating == 3),
        negative_days=sum(1 for e in ordered if e.mood_rating <= NEGATIVE_THRESHOLD),
        mood_trend=build_day_trend(days, ordered),
        mood_distribution=build_distribution(ordered),
        streaks=calculate_streaks(days, ordered),
        category_impacts=build_category_impacts(events),
        best_day=min(ordered, key=lambda e: (-e.mood_rating, e.entry_date), default=None),
        worst_day=min(ordered, key=lambda e: (e.mood_rating, e.entry_date), default=None),
        has_event_mood_data=any(event.mood_rating is not None for event in events),
    )


def get_wellness_summary(mood_store, event_store, user_id: str, year: int, month: int) -> WellnessSummary:
    """Load one calendar month of mood entries and events and summarize them."""

    if not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month}")

    month_start = date(year, month, 1)
    next_month = month_start + timedelta(days=calendar.monthrange(year, month)[1])

    entries = mood_store.fetch_mood_entries_for_month(user_id, year, month)
    events = event_store.fetch_events_in_range(user_id, day_start(month_start), day_start(next_month))
    summary = build_wellness_summary(year, month, entries, events)

    logger.info(
        "Wellness summary for user %s %04d-%02d: average=%.2f tracked_days=%d event_mood_data=%s",
        user_id,
        year,
        month,
        summary.average_mood,
        summary.total_tracked_days,
        summary.has_event_mood_data,
    )
    return summary
