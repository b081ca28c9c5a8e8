"""Calendar-health suggestions: overlaps, short gaps, overload and uneven weeks."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Optional

from calendar_engine.errors import NotFoundError, UnauthorizedError, ValidationError
from calendar_engine.schema import (
    RESPONSE_STATUSES,
    Event,
    ScheduleSuggestion,
    SuggestionStatus,
    SuggestionType,
)

logger = logging.getLogger(__name__)

MIN_BREAK = timedelta(minutes=15)
MAX_DAILY_HOURS = 8
LONG_BLOCK = timedelta(hours=4)
SHORT_RECOVERY = timedelta(minutes=30)
COMMENT_MAX_LENGTH = 500

TYPE_LABELS = {
    SuggestionType.MOVE_EVENT: "Move event",
    SuggestionType.RESOLVE_CONFLICT: "Resolve conflict",
    SuggestionType.OPTIMIZE_DISTRIBUTION: "Optimize distribution",
    SuggestionType.PATTERN_ALERT: "Pattern alert",
    SuggestionType.SUGGEST_BREAK: "Suggest break",
    SuggestionType.GENERAL_REORGANIZATION: "General reorganization",
}

STATUS_LABELS = {
    SuggestionStatus.PENDING: "Pending",
    SuggestionStatus.ACCEPTED: "Accepted",
    SuggestionStatus.REJECTED: "Rejected",
    SuggestionStatus.POSTPONED: "Postponed",
    SuggestionStatus.EXPIRED: "Expired",
}

_TYPE_ORDER = {suggestion_type: index for index, suggestion_type in enumerate(SuggestionType)}


def _by_day(events: list[Event]) -> dict[date, list[Event]]:
    grouped: dict[date, list[Event]] = defaultdict(list)
    for event in sorted(events, key=lambda e: e.start):
        grouped[event.start.date()].append(event)
    return grouped


def order_suggestions(suggestions: list[ScheduleSuggestion]) -> list[ScheduleSuggestion]:
    """Most urgent first; ties by suggestion type order, then oldest first."""

    return sorted(suggestions, key=lambda s: (-s.priority, _TYPE_ORDER[s.suggestion_type], s.created_at))


def detect_conflicts(user_id: str, events: list[Event], now: datetime) -> list[ScheduleSuggestion]:
    """Flag overlapping neighbours and neighbours separated by less than 15 minutes."""

    suggestions = []
    for day_events in _by_day(events).values():
        for current, following in zip(day_events, day_events[1:]):
            if current.end > following.start:
                suggestions.append(
                    ScheduleSuggestion(
                        user_id=user_id,
                        suggestion_type=SuggestionType.RESOLVE_CONFLICT,
                        event_id=following.event_id,
                        event_title=following.title,
                        description=f"Conflict detected: '{following.title}' overlaps with '{current.title}'",
                        reason=(
                            f"The event starts at {following.start:%H:%M} but "
                            f"'{current.title}' ends at {current.end:%H:%M}"
                        ),
                        priority=5,
                        suggested_start=current.end + MIN_BREAK,
                        confidence_score=95,
                        created_at=now,
                    )
                )
            elif following.start - current.end < MIN_BREAK:
                suggestions.append(
                    ScheduleSuggestion(
                        user_id=user_id,
                        suggestion_type=SuggestionType.SUGGEST_BREAK,
                        event_id=following.event_id,
                        event_title=following.title,
                        description=f"Very little time between '{current.title}' and '{following.title}'",
                        reason="At least 15 minutes of rest between events is recommended",
                        priority=3,
                        suggested_start=current.end + MIN_BREAK,
                        confidence_score=80,
                        created_at=now,
                    )
                )
    return suggestions


def detect_overload(user_id: str, events: list[Event], now: datetime) -> list[ScheduleSuggestion]:
    """Flag days over 8 scheduled hours and at most one long unbroken block per day."""

    suggestions = []
    for day, day_events in _by_day(events).items():
        total_hours = sum(event.duration.total_seconds() for event in day_events) / 3600
        if total_hours > MAX_DAILY_HOURS:
            suggestions.append(
                ScheduleSuggestion(
                    user_id=user_id,
                    suggestion_type=SuggestionType.PATTERN_ALERT,
                    description=f"Overloaded day: {day:%d/%m/%Y}",
                    reason=f"You have {total_hours:.1f} hours of scheduled events. Consider redistributing some of them",
                    priority=4,
                    confidence_score=85,
                    created_at=now,
                )
            )

        for current, following in zip(day_events, day_events[1:]):
            if following.start - current.start > LONG_BLOCK and following.start - current.end < SHORT_RECOVERY:
                suggestions.append(
                    ScheduleSuggestion(
                        user_id=user_id,
                        suggestion_type=SuggestionType.SUGGEST_BREAK,
                        description=f"Long stretch without a meaningful break on {day:%d/%m/%Y}",
                        reason="A block of more than 4 hours without adequate rest was detected",
                        priority=3,
                        suggested_start=current.end + timedelta(hours=2),
                        confidence_score=75,
                        created_at=now,
                    )
                )
                break
    return suggestions


def detect_uneven_distribution(user_id: str, events: list[Event], now: datetime) -> list[ScheduleSuggestion]:
    """Flag ISO weeks where one day is far busier than the weekly average and another far lighter."""

    by_week: dict[tuple[int, int], list[Event]] = defaultdict(list)
    for event in sorted(events, key=lambda e: e.start):
        iso = event.start.isocalendar()
        by_week[(iso[0], iso[1])].append(event)

    suggestions = []
    for week_events in by_week.values():
        per_day: dict[date, int] = defaultdict(int)
        for event in week_events:
            per_day[event.start.date()] += 1

        average = len(week_events) / len(per_day)
        overloaded = [day for day, count in per_day.items() if count > average * 1.5]
        light = [day for day, count in per_day.items() if count < average * 0.5]
        if not overloaded or not light:
            continue

        busy_day, light_day = overloaded[0], light[0]
        suggestions.append(
            ScheduleSuggestion(
                user_id=user_id,
                suggestion_type=SuggestionType.OPTIMIZE_DISTRIBUTION,
                description=f"Uneven distribution of events in the week of {week_events[0].start:%d/%m/%Y}",
                reason=(
                    f"You have {per_day[busy_day]} events on {busy_day:%A} "
                    f"but only {per_day[light_day]} on {light_day:%A}"
                ),
                priority=2,
                confidence_score=70,
                created_at=now,
            )
        )
    return suggestions


def generate_schedule_suggestions(
    event_store,
    suggestion_store,
    user_id: str,
    now: datetime,
    expiry_days: int = 7,
    lookahead_days: int = 7,
    distribution_days: int = 14,
) -> list[ScheduleSuggestion]:
    """Expire stale suggestions, detect new ones and store those not already pending.

    Pending suggestions whose condition has since cleared (for example a
    conflict fixed by editing an event) are not withdrawn here; they stay
    pending until the user answers them or they pass ``expiry_days``.
    """

    expired = suggestion_store.expire_suggestions_older_than(user_id, now - timedelta(days=expiry_days))
    if expired:
        logger.info("Expired %d stale suggestions for user %s", expired, user_id)

    week = event_store.fetch_events_in_range(user_id, now, now + timedelta(days=lookahead_days))
    fortnight = event_store.fetch_events_in_range(user_id, now, now + timedelta(days=distribution_days))

    detected = [
        *detect_conflicts(user_id, week, now),
        *detect_overload(user_id, week, now),
        *detect_uneven_distribution(user_id, fortnight, now),
    ]

    pending = {suggestion.dedup_key: suggestion for suggestion in suggestion_store.fetch_pending_suggestions(user_id)}
    results = []
    seen = set()
    created = 0
    for suggestion in detected:
        key = suggestion.dedup_key
        if key in seen:
            continue
        seen.add(key)
        if key in pending:
            results.append(pending[key])
            continue
        suggestion_store.create_suggestion(suggestion)
        results.append(suggestion)
        created += 1

    logger.info(
        "Schedule suggestions for user %s: %d detected, %d created, %d already pending",
        user_id,
        len(detected),
        created,
        len(results) - created,
    )
    return order_suggestions(results)


def get_pending_suggestions(suggestion_store, user_id: str) -> list[ScheduleSuggestion]:
    return order_suggestions(suggestion_store.fetch_pending_suggestions(user_id))


def _parse_status(status) -> SuggestionStatus:
    try:
        parsed = SuggestionStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Unknown suggestion status {status!r}") from exc
    if parsed not in RESPONSE_STATUSES:
        raise ValidationError("Only Accepted, Rejected or Postponed are allowed as a response")
    return parsed


def _apply_move(event_store, suggestion: ScheduleSuggestion) -> None:
    event = event_store.fetch_event(suggestion.event_id)
    if event is None:
        raise NotFoundError(f"Event {suggestion.event_id} not found")
    if event.user_id != suggestion.user_id:
        raise UnauthorizedError("The linked event belongs to another user")

    duration = event.duration
    old_start = event.start
    event.start = suggestion.suggested_start
    event.end = suggestion.suggested_start + duration
    event_store.update_event(event)
    logger.info("Moved event %s from %s to %s", event.event_id, old_start, event.start)


def respond_to_suggestion(
    event_store,
    suggestion_store,
    suggestion_id: str,
    status,
    user_id: str,
    now: datetime,
    comment: Optional[str] = None,
) -> ScheduleSuggestion:
    """Record the user's response; accepted MoveEvent suggestions reschedule their event."""

    new_status = _parse_status(status)
    comment = comment.strip() if comment and comment.strip() else None
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")

    suggestion = suggestion_store.fetch_suggestion(suggestion_id)
    if suggestion is None:
        raise NotFoundError(f"Suggestion {suggestion_id} not found")
    if suggestion.user_id != user_id:
        raise UnauthorizedError("You are not allowed to respond to this suggestion")
    if suggestion.status not in (SuggestionStatus.PENDING, SuggestionStatus.POSTPONED):
        raise ValidationError(f"Suggestion is already {STATUS_LABELS[suggestion.status].lower()}")

    suggestion.status = new_status
    suggestion.responded_at = now
    if comment is not None:
        suggestion.user_comment = comment

    if new_status == SuggestionStatus.ACCEPTED:
        if (
            suggestion.suggestion_type == SuggestionType.MOVE_EVENT
            and suggestion.event_id
            and suggestion.suggested_start is not None
        ):
            _apply_move(event_store, suggestion)
        else:
            logger.info(
                "Suggestion %s (%s) acknowledged without automatic changes",
                suggestion.suggestion_id,
                TYPE_LABELS[suggestion.suggestion_type],
            )

    suggestion_store.update_suggestion(suggestion)
    logger.info("Suggestion %s marked %s by user %s", suggestion_id, STATUS_LABELS[new_status], user_id)
    return suggestion
