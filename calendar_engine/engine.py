"""Scheduling intelligence engine: the operations exposed to the presentation layer."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from calendar_engine import feedback, productivity, selfcare, suggestions, wellness
from calendar_engine.config import EngineSettings
from calendar_engine.features import build_analytics
from calendar_engine.recent import RecentSuggestionStore
from calendar_engine.recommendations import (
    RecommendationEnricher,
    clamp_count,
    fallback_recommendation,
    generate_recommendations,
    rank_recommendations,
)
from calendar_engine.schema import (
    FeedbackSubmission,
    FeedbackSummary,
    Recommendation,
    RecommendationFeedback,
    ScheduleSuggestion,
    utcnow,
)
from calendar_engine.windows import fetch_event_windows, fetch_mood_window

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Request-scoped recommendation, feedback and calendar-health operations.

    Holds no mutable state of its own apart from the recent-id stores
    (``recent_store`` for recommendations, ``self_care_store`` for self-care);
    all data comes from the storage collaborators.
    """

    def __init__(
        self,
        event_store,
        mood_store,
        feedback_store,
        suggestion_store,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], datetime] = utcnow,
        recent_store: Optional[RecentSuggestionStore] = None,
        enricher: Optional[RecommendationEnricher] = None,
        self_care_store: Optional[RecentSuggestionStore] = None,
    ) -> None:
        self.event_store = event_store
        self.mood_store = mood_store
        self.feedback_store = feedback_store
        self.suggestion_store = suggestion_store
        self.settings = settings or EngineSettings()
        self.clock = clock
        self.recent_store = recent_store
        self.enricher = enricher
        self.self_care_store = self_care_store or RecentSuggestionStore(
            window=timedelta(hours=self.settings.recent_window_hours), clock=clock
        )

    @classmethod
    def from_store(cls, store, **kwargs) -> "SchedulingEngine":
        """Build an engine whose four collaborators are the same object."""

        return cls(store, store, store, store, **kwargs)

    def get_recommendations(
        self,
        user_id: str,
        reference_date=None,
        limit: Optional[int] = None,
        current_mood: Optional[int] = None,
        external_context: Optional[str] = None,
    ) -> list[Recommendation]:
        feedback.validate_mood(current_mood, "current_mood")

        now = self.clock()
        if reference_date is None:
            reference_date = now.date()
        elif isinstance(reference_date, datetime):
            reference_date = reference_date.date()

        cfg = self.settings
        desired = clamp_count(
            limit, cfg.default_recommendation_count, cfg.min_recommendation_count, cfg.max_recommendation_count
        )

        historical, upcoming = fetch_event_windows(
            self.event_store, user_id, reference_date, cfg.lookback_days, cfg.lookahead_days
        )
        mood_entries = fetch_mood_window(self.mood_store, user_id, reference_date)
        analytics = build_analytics(historical, mood_entries)

        exclude = frozenset(self.recent_store.recent_ids(user_id)) if self.recent_store else frozenset()
        recommendations = generate_recommendations(
            reference_date,
            analytics,
            upcoming,
            desired,
            now,
            current_mood=current_mood,
            has_history=bool(historical or mood_entries),
            exclude_ids=exclude,
            minimum=cfg.min_recommendation_count,
            lookahead_days=cfg.lookahead_days,
            slot_minutes=cfg.slot_duration_minutes,
        )

        if self.enricher is not None:
            recommendations = self._enrich(recommendations, external_context, reference_date, desired)

        logger.info(
            "Generated %d recommendations for user %s on %s", len(recommendations), user_id, reference_date.isoformat()
        )
        return recommendations

    def _enrich(
        self, recommendations: list[Recommendation], external_context: Optional[str], reference_date: date, desired: int
    ) -> list[Recommendation]:
        try:
            enriched = self.enricher.enrich(list(recommendations), external_context)
        except Exception:  # noqa: BLE001
            logger.warning("Recommendation enrichment failed, keeping deterministic results", exc_info=True)
            return recommendations

        if not enriched:
            enriched = [fallback_recommendation(reference_date)]
        return rank_recommendations(enriched, desired)

    def record_feedback(self, user_id: str, submission: FeedbackSubmission) -> RecommendationFeedback:
        row = feedback.record_feedback(
            self.feedback_store, user_id, submission, self.clock(), self.settings.notes_max_length
        )
        if self.recent_store is not None:
            self.recent_store.mark(user_id, row.recommendation_id, row.submitted_at)
        return row

    def get_feedback_summary(self, user_id: str, period_start: datetime) -> FeedbackSummary:
        return feedback.get_feedback_summary(self.feedback_store, user_id, period_start, self.clock())

    def generate_schedule_suggestions(self, user_id: str) -> list[ScheduleSuggestion]:
        return suggestions.generate_schedule_suggestions(
            self.event_store,
            self.suggestion_store,
            user_id,
            self.clock(),
            expiry_days=self.settings.suggestion_expiry_days,
            lookahead_days=self.settings.lookahead_days,
            distribution_days=self.settings.distribution_window_days,
        )

    def get_pending_suggestions(self, user_id: str) -> list[ScheduleSuggestion]:
        return suggestions.get_pending_suggestions(self.suggestion_store, user_id)

    def respond_to_suggestion(
        self, suggestion_id: str, status, user_id: str, comment: Optional[str] = None
    ) -> ScheduleSuggestion:
        return suggestions.respond_to_suggestion(
            self.event_store, self.suggestion_store, suggestion_id, status, user_id, self.clock(), comment
        )

    def get_wellness_summary(self, user_id: str, year: int, month: int) -> wellness.WellnessSummary:
        return wellness.get_wellness_summary(self.mood_store, self.event_store, user_id, year, month)

    def analyze_productivity(
        self, user_id: str, period_days: Optional[int] = None, timezone_offset_minutes: int = 0
    ) -> productivity.ProductivityAnalysis:
        return productivity.analyze_productivity(
            self.event_store,
            user_id,
            self.clock(),
            period_days=self.settings.productivity_period_days if period_days is None else period_days,
            timezone_offset_minutes=timezone_offset_minutes,
        )

    def get_self_care_suggestions(
        self, user_id: str, current_mood: Optional[int] = None, count: Optional[int] = None
    ) -> list[selfcare.SelfCareSuggestion]:
        feedback.validate_mood(current_mood, "current_mood")
        return selfcare.get_self_care_suggestions(
            self.event_store,
            self.self_care_store,
            user_id,
            self.clock(),
            current_mood=current_mood,
            count=self.settings.default_self_care_count if count is None else count,
            lookback_days=self.settings.self_care_lookback_days,
        )

    def record_self_care_action(
        self, user_id: str, suggestion_id: str, action, used_at: Optional[datetime] = None
    ) -> selfcare.SelfCareAction:
        return selfcare.record_self_care_action(self.self_care_store, user_id, suggestion_id, action, used_at)
