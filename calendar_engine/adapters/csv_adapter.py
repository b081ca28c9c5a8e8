"""CSV adapter for calendar events and mood entries."""

from __future__ import annotations

import csv

from calendar_engine.adapters.records import to_event, to_mood_entry
from calendar_engine.schema import Event, MoodEntry


def _read_rows(file_path: str, convert) -> list:
    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []
        return [convert(row, f"Row {row_number}") for row_number, row in enumerate(reader, start=2)]


def parse_events(file_path: str) -> list[Event]:
    """Parse a CSV file of events."""

    return _read_rows(file_path, to_event)


def parse_moods(file_path: str) -> list[MoodEntry]:
    """Parse a CSV file of daily mood entries."""

    return _read_rows(file_path, to_mood_entry)
