"""Category and mood-trend analytics over the lookback window."""

from __future__ import annotations

from collections import defaultdict

import numpy as np

from calendar_engine.schema import Analytics, CategorySnapshot, Event, MoodEntry, MoodPoint

POSITIVE_RATING = 4
RECENT_MOOD_POINTS = 7
DEFAULT_CATEGORY_NAME = "Activity"


def positive_share(events: list[Event]) -> float:
    if not events:
        return 0.0
    positives = sum(1 for event in events if event.mood_rating is not None and event.mood_rating >= POSITIVE_RATING)
    return round(positives / len(events), 2)


def _snapshot(category_id: str, events: list[Event]) -> CategorySnapshot:
    first = events[0]
    ratings = [event.mood_rating for event in events if event.mood_rating is not None]
    return CategorySnapshot(
        category_id=category_id,
        category_name=first.category_name or DEFAULT_CATEGORY_NAME,
        category_color=first.category_color,
        events=events,
        mood_average=float(np.mean(ratings)) if ratings else 0.0,
        positive_share=positive_share(events),
    )


def build_category_snapshots(events: list[Event]) -> list[CategorySnapshot]:
    """Group categorized events; best mood first, then busiest."""

    by_category: dict[str, list[Event]] = defaultdict(list)
    for event in sorted(events, key=lambda e: e.start):
        if event.category_id:
            by_category[event.category_id].append(event)

    snapshots = [_snapshot(category_id, grouped) for category_id, grouped in by_category.items()]
    return sorted(snapshots, key=lambda s: (-s.mood_average, -len(s.events)))


def build_mood_trend(entries: list[MoodEntry]) -> list[MoodPoint]:
    return [MoodPoint(day=entry.entry_date, mood_rating=entry.mood_rating) for entry in sorted(entries, key=lambda e: e.entry_date)]


def recent_mood_average(trend: list[MoodPoint], points: int = RECENT_MOOD_POINTS):
    if not trend:
        return None
    return round(float(np.mean([point.mood_rating for point in trend[-points:]])), 2)


def build_analytics(events: list[Event], mood_entries: list[MoodEntry]) -> Analytics:
    """Aggregate historical events and mood entries for one user."""

    trend = build_mood_trend(mood_entries)
    return Analytics(
        categories=build_category_snapshots(events),
        mood_trend=trend,
        recent_mood_average=recent_mood_average(trend),
    )
