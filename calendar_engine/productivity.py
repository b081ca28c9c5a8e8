"""Productivity analytics: hourly and weekday scores, golden and low-energy hours."""

from __future__ import annotations

import calendar
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

import numpy as np

from calendar_engine.errors import ValidationError
from calendar_engine.schema import Event
from calendar_engine.windows import day_start

logger = logging.getLogger(__name__)

HOURLY_WINDOW_DAYS = 7
GOLDEN_THRESHOLD = 70.0
LOW_ENERGY_THRESHOLD = 30.0
LOW_ENERGY_WARNING_THRESHOLD = 40.0
WORK_KEYWORDS = ("work", "trabajo", "laboral", "office", "business", "briefcase")


@dataclass
class HourlyProductivity:
    hour: int
    average_mood: float
    events_completed: int
    total_events: int
    completion_rate: float
    productivity_score: float


@dataclass
class DailyProductivity:
    """Weekday productivity; ``day_of_week`` follows ``date.weekday()`` (0 is Monday)."""

    day_of_week: int
    day_name: str
    average_mood: float
    productivity_score: float
    total_events: int


@dataclass
class HourRange:
    start_hour: int
    end_hour: int
    average_productivity_score: float
    description: str


@dataclass
class CategoryProductivity:
    category_id: str
    category_name: str
    category_color: Optional[str]
    optimal_hours: list[int]
    average_productivity_score: float
    best_day_of_week: int


@dataclass
class ProductivityRecommendation:
    title: str
    description: str
    priority: int
    recommendation_type: str
    suggested_hours: list[int] = field(default_factory=list)
    affected_categories: list[str] = field(default_factory=list)


@dataclass
class ProductivityAnalysis:
    """Result of one analysis run; ``period_end`` is exclusive."""

    hourly: list[HourlyProductivity]
    daily: list[DailyProductivity]
    golden_hours: list[HourRange]
    low_energy_hours: list[HourRange]
    categories: list[CategoryProductivity]
    recommendations: list[ProductivityRecommendation]
    period_start: datetime
    period_end: datetime
    total_events_analyzed: int
    total_mood_records_analyzed: int


@dataclass
class _LocalEvent:
    event: Event
    start: datetime
    end: datetime


@dataclass
class _HourAccumulator:
    total_minutes: float = 0.0
    mood_minutes: float = 0.0
    mood_weighted_sum: float = 0.0
    event_ids: set = field(default_factory=set)
    rated_ids: set = field(default_factory=set)
    dates: set = field(default_factory=set)


def normalize_mood(mood: float) -> float:
    """Map a 1-5 mood onto [0, 1]."""

    return max(0.0, min(1.0, (mood - 1) / 4.0))


def is_work_event(event: Event) -> bool:
    name = (event.category_name or "").strip().lower()
    return any(keyword in name for keyword in WORK_KEYWORDS)


def time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 14:
        return "Midday"
    if 14 <= hour < 20:
        return "Afternoon"
    if 20 <= hour < 24:
        return "Night"
    return "Early morning"


def calculate_hourly_productivity(
    events: list[_LocalEvent], window_start: datetime, window_end: datetime
) -> list[HourlyProductivity]:
    """Score each hour of the day from the minutes events spend in it.

    Score = (mood * 0.6 + rated-minute coverage * 0.25 + distinct days / 5 * 0.1
    + distinct events / 4 * 0.05) * 100, with the last two capped at 1.
    """

    accumulators = [_HourAccumulator() for _ in range(24)]

    for local in events:
        effective_start = max(local.start, window_start)
        effective_end = min(local.end, window_end)
        cursor = effective_start
        while cursor < effective_end:
            hour_start = cursor.replace(minute=0, second=0, microsecond=0)
            hour_end = hour_start + timedelta(hours=1)
            minutes = (min(effective_end, hour_end) - cursor).total_seconds() / 60

            acc = accumulators[hour_start.hour]
            acc.total_minutes += minutes
            acc.event_ids.add(local.event.event_id)
            acc.dates.add(hour_start.date())
            if local.event.mood_rating is not None:
                acc.mood_minutes += minutes
                acc.mood_weighted_sum += local.event.mood_rating * minutes
                acc.rated_ids.add(local.event.event_id)

            cursor = hour_end

    hourly = []
    for hour, acc in enumerate(accumulators):
        if acc.total_minutes <= 0:
            hourly.append(HourlyProductivity(hour, 0.0, 0, 0, 0.0, 0.0))
            continue

        average_mood = round(acc.mood_weighted_sum / acc.mood_minutes, 2) if acc.mood_minutes else 0.0
        coverage = acc.mood_minutes / acc.total_minutes
        mood_score = normalize_mood(average_mood) if acc.mood_minutes else 0.0
        consistency = min(len(acc.dates) / 5.0, 1.0)
        volume = min(len(acc.event_ids) / 4.0, 1.0)
        score = (mood_score * 0.6 + coverage * 0.25 + consistency * 0.1 + volume * 0.05) * 100

        hourly.append(
            HourlyProductivity(
                hour=hour,
                average_mood=average_mood,
                events_completed=len(acc.rated_ids),
                total_events=len(acc.event_ids),
                completion_rate=round(coverage * 100, 2),
                productivity_score=round(score, 2),
            )
        )
    return hourly


def calculate_daily_productivity(events: list[_LocalEvent]) -> list[DailyProductivity]:
    by_day: dict[int, list[Event]] = defaultdict(list)
    for local in events:
        by_day[local.start.weekday()].append(local.event)

    daily = []
    for day in range(7):
        day_events = by_day.get(day, [])
        ratings = [event.mood_rating for event in day_events if event.mood_rating is not None]
        if not day_events:
            daily.append(DailyProductivity(day, calendar.day_name[day], 0.0, 0.0, 0))
            continue

        average_mood = float(np.mean(ratings)) if ratings else 0.0
        coverage = len(ratings) / len(day_events)
        mood_score = normalize_mood(average_mood) if ratings else 0.0
        volume = min(len(day_events) / 6.0, 1.0)
        score = (mood_score * 0.55 + coverage * 0.3 + volume * 0.15) * 100

        daily.append(
            DailyProductivity(
                day_of_week=day,
                day_name=calendar.day_name[day],
                average_mood=round(average_mood, 2),
                productivity_score=round(score, 2),
                total_events=len(day_events),
            )
        )
    return daily


def _group_consecutive(hours: list[HourlyProductivity]) -> list[HourRange]:
    groups: list[list[HourlyProductivity]] = []
    for stat in sorted(hours, key=lambda h: h.hour):
        if groups and stat.hour == groups[-1][-1].hour + 1:
            groups[-1].append(stat)
        else:
            groups.append([stat])

    ranges = []
    for group in groups:
        start, end = group[0].hour, group[-1].hour + 1
        ranges.append(
            HourRange(
                start_hour=start,
                end_hour=end,
                average_productivity_score=round(float(np.mean([h.productivity_score for h in group])), 2),
                description=f"{time_of_day(start)}: {start:02d}:00 - {end:02d}:00",
            )
        )
    return ranges


def identify_golden_hours(hourly: list[HourlyProductivity]) -> list[HourRange]:
    return _group_consecutive([h for h in hourly if h.total_events > 0 and h.productivity_score >= GOLDEN_THRESHOLD])


def identify_low_energy_hours(hourly: list[HourlyProductivity]) -> list[HourRange]:
    return _group_consecutive(
        [h for h in hourly if h.total_events > 0 and 0 < h.productivity_score <= LOW_ENERGY_THRESHOLD]
    )


def calculate_category_productivity(events: list[_LocalEvent]) -> list[CategoryProductivity]:
    """Per-category score from rated share and mood, with the three busiest start hours."""

    grouped: dict[str, list[_LocalEvent]] = defaultdict(list)
    for local in events:
        if local.event.category_id:
            grouped[local.event.category_id].append(local)

    categories = []
    for category_id, members in grouped.items():
        first = members[0].event
        ratings = [m.event.mood_rating for m in members if m.event.mood_rating is not None]
        mood_score = normalize_mood(float(np.mean(ratings))) if ratings else 0.0
        coverage = len(ratings) / len(members)

        categories.append(
            CategoryProductivity(
                category_id=category_id,
                category_name=first.category_name or category_id,
                category_color=first.category_color,
                optimal_hours=[hour for hour, _ in Counter(m.start.hour for m in members).most_common(3)],
                average_productivity_score=round((mood_score * 0.6 + coverage * 0.4) * 100, 2),
                best_day_of_week=Counter(m.start.weekday() for m in members).most_common(1)[0][0],
            )
        )

    return sorted(categories, key=lambda c: -c.average_productivity_score)


def _mood_note(hours: list[HourlyProductivity]) -> str:
    moods = [h.average_mood for h in hours]
    if not any(mood > 0 for mood in moods):
        return ""
    return f" (average mood {float(np.mean(moods)):.1f}/5)"


def build_productivity_recommendations(
    hourly: list[HourlyProductivity], daily: list[DailyProductivity], categories: list[CategoryProductivity]
) -> list[ProductivityRecommendation]:
    recommendations = []

    top_hours = sorted(
        [h for h in hourly if h.total_events > 0 and h.productivity_score >= GOLDEN_THRESHOLD],
        key=lambda h: -h.productivity_score,
    )[:3]
    if top_hours:
        first, last = min(h.hour for h in top_hours), max(h.hour for h in top_hours) + 1
        recommendations.append(
            ProductivityRecommendation(
                title="Make the most of your productive hours",
                description=(
                    f"You perform best between {first:02d}:00 and {last:02d}:00{_mood_note(top_hours)}. "
                    "Schedule important tasks in this window."
                ),
                priority=5,
                recommendation_type="golden-hours",
                suggested_hours=[h.hour for h in top_hours],
            )
        )

    low_hours = [h for h in hourly if h.total_events > 0 and 0 < h.productivity_score < LOW_ENERGY_WARNING_THRESHOLD]
    if low_hours:
        first, last = low_hours[0].hour, low_hours[-1].hour + 1
        recommendations.append(
            ProductivityRecommendation(
                title="Avoid demanding work in low-energy hours",
                description=(
                    f"Your performance drops between {first:02d}:00 and {last:02d}:00{_mood_note(low_hours)}. "
                    "Keep these slots for light tasks or breaks."
                ),
                priority=4,
                recommendation_type="low-energy-warning",
                suggested_hours=[h.hour for h in low_hours],
            )
        )

    best_day = max(daily, key=lambda d: d.productivity_score, default=None)
    if best_day is not None and best_day.total_events > 0:
        recommendations.append(
            ProductivityRecommendation(
                title=f"{best_day.day_name}s are your most productive days",
                description=(
                    f"Consider scheduling your most important activities on {best_day.day_name}s, "
                    f"where your average productivity is {best_day.productivity_score:.1f}%."
                ),
                priority=3,
                recommendation_type="best-day",
            )
        )

    for category in categories[:2]:
        if not category.optimal_hours:
            continue
        recommendations.append(
            ProductivityRecommendation(
                title=f"Best time for {category.category_name}",
                description=(
                    f"Your '{category.category_name}' activities work best around "
                    f"{category.optimal_hours[0]:02d}:00. Consider scheduling them then."
                ),
                priority=2,
                recommendation_type="category-optimization",
                suggested_hours=list(category.optimal_hours),
                affected_categories=[category.category_name],
            )
        )

    return sorted(recommendations, key=lambda r: -r.priority)


def analyze_productivity(
    event_store,
    user_id: str,
    now: datetime,
    period_days: int = 30,
    timezone_offset_minutes: int = 0,
) -> ProductivityAnalysis:
    """Analyze the last ``period_days`` local days, today included.

    Work-category events are analyzed when there are any, otherwise every
    event. The hourly breakdown only covers the seven local days before today.
    """

    if period_days < 1:
        raise ValidationError("period_days must be at least 1")

    offset = timedelta(minutes=timezone_offset_minutes)
    today = day_start((now + offset).date())
    local_start = today - timedelta(days=period_days - 1)
    local_end = local_start + timedelta(days=period_days)
    period_start, period_end = local_start - offset, local_end - offset

    events = event_store.fetch_events_in_range(user_id, period_start, period_end)
    selected = [event for event in events if is_work_event(event)] or events
    if len(selected) != len(events):
        logger.debug("Analyzing %d work events out of %d", len(selected), len(events))

    localized = sorted(
        (
            _LocalEvent(event=event, start=event.start + offset, end=event.end + offset)
            for event in selected
            if event.end > event.start
        ),
        key=lambda local: local.start,
    )

    window_start = max(today - timedelta(days=HOURLY_WINDOW_DAYS), local_start)
    hourly_events = [local for local in localized if local.start < today and local.end > window_start]

    hourly = calculate_hourly_productivity(hourly_events, window_start, today)
    daily = calculate_daily_productivity(localized)
    categories = calculate_category_productivity(localized)

    analysis = ProductivityAnalysis(
        hourly=hourly,
        daily=daily,
        golden_hours=identify_golden_hours(hourly),
        low_energy_hours=identify_low_energy_hours(hourly),
        categories=categories,
        recommendations=build_productivity_recommendations(hourly, daily, categories),
        period_start=period_start,
        period_end=period_end,
        total_events_analyzed=len(localized),
        total_mood_records_analyzed=sum(1 for local in localized if local.event.mood_rating is not None),
    )

    logger.info(
        "Productivity analysis for user %s: %d events, %d golden ranges, %d low-energy ranges",
        user_id,
        analysis.total_events_analyzed,
        len(analysis.golden_hours),
        len(analysis.low_energy_hours),
    )
    return analysis
