"""Storage collaborator interfaces and an in-memory implementation."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional, Protocol

from calendar_engine.schema import (
    Event,
    MoodEntry,
    RecommendationFeedback,
    ScheduleSuggestion,
    SuggestionStatus,
)


class EventStore(Protocol):
    def fetch_events_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Event]: ...

    def fetch_event(self, event_id: str) -> Optional[Event]: ...

    def update_event(self, event: Event) -> None: ...


class MoodStore(Protocol):
    def fetch_mood_entries_for_month(self, user_id: str, year: int, month: int) -> list[MoodEntry]: ...


class FeedbackStore(Protocol):
    def upsert_feedback(
        self,
        user_id: str,
        recommendation_id: str,
        accepted: bool,
        notes: Optional[str],
        mood_after: Optional[int],
        submitted_at: datetime,
    ) -> None: ...

    def fetch_feedback_since(self, user_id: str, period_start: datetime) -> list[RecommendationFeedback]: ...


class SuggestionStore(Protocol):
    def create_suggestion(self, suggestion: ScheduleSuggestion) -> None: ...

    def update_suggestion(self, suggestion: ScheduleSuggestion) -> None: ...

    def expire_suggestions_older_than(self, user_id: str, cutoff: datetime) -> int: ...

    def fetch_pending_suggestions(self, user_id: str) -> list[ScheduleSuggestion]: ...

    def fetch_suggestion(self, suggestion_id: str) -> Optional[ScheduleSuggestion]: ...


class InMemoryStore:
    """Dict-backed store implementing every collaborator interface.

    Events are returned when ``start <= event.start < end``.
    """

    def __init__(self, events=None, mood_entries=None) -> None:
        self._lock = threading.Lock()
        self.events: dict[str, Event] = {event.event_id: event for event in events or []}
        self.mood_entries: list[MoodEntry] = list(mood_entries or [])
        self.feedback: dict[tuple[str, str], RecommendationFeedback] = {}
        self.suggestions: dict[str, ScheduleSuggestion] = {}

    def add_event(self, event: Event) -> None:
        self.events[event.event_id] = event

    def add_mood_entry(self, entry: MoodEntry) -> None:
        self.mood_entries.append(entry)

    def fetch_events_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Event]:
        return [
            replace(event)
            for event in self.events.values()
            if event.user_id == user_id and start <= event.start < end
        ]

    def fetch_event(self, event_id: str) -> Optional[Event]:
        event = self.events.get(event_id)
        return replace(event) if event else None

    def update_event(self, event: Event) -> None:
        self.events[event.event_id] = replace(event)

    def fetch_mood_entries_for_month(self, user_id: str, year: int, month: int) -> list[MoodEntry]:
        return [
            entry
            for entry in self.mood_entries
            if entry.user_id == user_id and (entry.entry_date.year, entry.entry_date.month) == (year, month)
        ]

    def upsert_feedback(self, user_id, recommendation_id, accepted, notes, mood_after, submitted_at) -> None:
        with self._lock:
            self.feedback[(user_id, recommendation_id)] = RecommendationFeedback(
                user_id=user_id,
                recommendation_id=recommendation_id,
                accepted=accepted,
                notes=notes,
                mood_after=mood_after,
                submitted_at=submitted_at,
            )

    def fetch_feedback_since(self, user_id: str, period_start: datetime) -> list[RecommendationFeedback]:
        with self._lock:
            rows = list(self.feedback.values())
        return [row for row in rows if row.user_id == user_id and row.submitted_at >= period_start]

    def create_suggestion(self, suggestion: ScheduleSuggestion) -> None:
        self.suggestions[suggestion.suggestion_id] = replace(suggestion)

    def update_suggestion(self, suggestion: ScheduleSuggestion) -> None:
        self.suggestions[suggestion.suggestion_id] = replace(suggestion)

    def expire_suggestions_older_than(self, user_id: str, cutoff: datetime) -> int:
        expired = 0
        for suggestion in self.suggestions.values():
            if (
                suggestion.user_id == user_id
                and suggestion.status == SuggestionStatus.PENDING
                and suggestion.created_at < cutoff
            ):
                suggestion.status = SuggestionStatus.EXPIRED
                expired += 1
        return expired

    def fetch_pending_suggestions(self, user_id: str) -> list[ScheduleSuggestion]:
        return [
            replace(suggestion)
            for suggestion in self.suggestions.values()
            if suggestion.user_id == user_id and suggestion.status == SuggestionStatus.PENDING
        ]

    def fetch_suggestion(self, suggestion_id: str) -> Optional[ScheduleSuggestion]:
        suggestion = self.suggestions.get(suggestion_id)
        return replace(suggestion) if suggestion else None
