"""Core data schema for calendar events, mood entries and engine outputs."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    """Naive UTC timestamp; every datetime in the engine is naive UTC."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecommendationType(str, Enum):
    ACTIVITY = "activity"
    WELLBEING = "wellbeing"
    REFLECTION = "reflection"
    ROUTINE = "routine"
    REST = "rest"


class SuggestionType(str, Enum):
    """Calendar-health suggestion kinds, in tie-break order."""

    MOVE_EVENT = "MoveEvent"
    RESOLVE_CONFLICT = "ResolveConflict"
    OPTIMIZE_DISTRIBUTION = "OptimizeDistribution"
    PATTERN_ALERT = "PatternAlert"
    SUGGEST_BREAK = "SuggestBreak"
    GENERAL_REORGANIZATION = "GeneralReorganization"


class SuggestionStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    POSTPONED = "Postponed"
    EXPIRED = "Expired"


# Statuses a user may set when responding to a suggestion.
RESPONSE_STATUSES = frozenset({SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED, SuggestionStatus.POSTPONED})


@dataclass
class Event:
    """Scheduled calendar activity owned by one user."""

    event_id: str
    title: str
    start: datetime
    end: datetime
    user_id: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    mood_rating: Optional[int] = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


@dataclass
class MoodEntry:
    """One daily mood rating (1-5)."""

    user_id: str
    entry_date: date
    mood_rating: int
    notes: Optional[str] = None


@dataclass
class MoodPoint:
    day: date
    mood_rating: int


@dataclass
class CategorySnapshot:
    """Aggregate of one category's events inside the lookback window."""

    category_id: str
    category_name: str
    category_color: Optional[str]
    events: list[Event]
    mood_average: float
    positive_share: float


@dataclass
class Analytics:
    categories: list[CategorySnapshot]
    mood_trend: list[MoodPoint]
    recent_mood_average: Optional[float]


@dataclass
class Recommendation:
    """Ephemeral, explainable activity recommendation.

    Confidence is a fraction clamped to [0, 1] and the duration is never
    shorter than ``MIN_DURATION_MINUTES``.
    """

    MIN_DURATION_MINUTES = 10

    recommendation_id: str
    title: str
    reason: str
    recommendation_type: RecommendationType
    suggested_start: datetime
    suggested_duration_minutes: int
    confidence: float
    subtitle: Optional[str] = None
    summary: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    mood_impact: Optional[str] = None

    def __post_init__(self) -> None:
        self.recommendation_type = RecommendationType(self.recommendation_type)
        self.confidence = round(max(0.0, min(1.0, float(self.confidence))), 2)
        self.suggested_duration_minutes = max(self.MIN_DURATION_MINUTES, int(self.suggested_duration_minutes))


@dataclass
class FeedbackSubmission:
    """User input for recording feedback on a recommendation."""

    recommendation_id: Optional[str]
    accepted: bool
    notes: Optional[str] = None
    mood_after: Optional[int] = None
    submitted_at: Optional[datetime] = None


@dataclass
class RecommendationFeedback:
    """Persisted feedback row, unique per (user_id, recommendation_id)."""

    user_id: str
    recommendation_id: str
    accepted: bool
    submitted_at: datetime
    notes: Optional[str] = None
    mood_after: Optional[int] = None


@dataclass
class FeedbackSummary:
    total_feedback: int
    accepted_count: int
    rejected_count: int
    acceptance_rate: float
    average_mood_after: Optional[float]
    period_start: datetime
    period_end: datetime


@dataclass
class ScheduleSuggestion:
    """Calendar-health suggestion.

    Priority uses a 1-5 scale (5 most urgent) and ``confidence_score`` is a
    percentage in [0, 100]. Pending lists are ordered by priority descending,
    ties broken by ``SuggestionType`` declaration order and then by
    ``created_at``.
    """

    user_id: str
    suggestion_type: SuggestionType
    description: str
    reason: str
    priority: int
    confidence_score: int
    event_id: Optional[str] = None
    event_title: Optional[str] = None
    suggested_start: Optional[datetime] = None
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    responded_at: Optional[datetime] = None
    user_comment: Optional[str] = None
    suggestion_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        self.suggestion_type = SuggestionType(self.suggestion_type)
        self.status = SuggestionStatus(self.status)
        self.priority = max(1, min(5, int(self.priority)))
        self.confidence_score = max(0, min(100, int(self.confidence_score)))

    @property
    def dedup_key(self) -> tuple:
        return (self.suggestion_type, self.event_id, self.description)
