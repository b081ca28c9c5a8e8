"""Bounded event and mood windows around a reference date."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from calendar_engine.schema import Event, MoodEntry


def day_start(day: date) -> datetime:
    return datetime.combine(day, time())


def previous_month(day: date) -> tuple[int, int]:
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1


def fetch_event_windows(
    event_store, user_id: str, reference_date: date, lookback_days: int, lookahead_days: int
) -> tuple[list[Event], list[Event]]:
    """Return (historical, upcoming) events sorted by start.

    Historical covers ``[reference - lookback, reference)`` and upcoming
    covers ``[reference, reference + lookahead)``.
    """

    reference = day_start(reference_date)
    historical = event_store.fetch_events_in_range(user_id, reference - timedelta(days=lookback_days), reference)
    upcoming = event_store.fetch_events_in_range(user_id, reference, reference + timedelta(days=lookahead_days))
    return sorted(historical, key=lambda e: e.start), sorted(upcoming, key=lambda e: e.start)


def fetch_mood_window(mood_store, user_id: str, reference_date: date) -> list[MoodEntry]:
    """Return current and previous calendar month mood entries, chronologically."""

    current = mood_store.fetch_mood_entries_for_month(user_id, reference_date.year, reference_date.month)
    prev_year, prev_month = previous_month(reference_date)
    previous = mood_store.fetch_mood_entries_for_month(user_id, prev_year, prev_month)
    entries = [entry for entry in [*current, *previous] if entry is not None]
    return sorted(entries, key=lambda entry: entry.entry_date)
