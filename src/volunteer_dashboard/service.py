from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from statistics import mean
from typing import Any, Callable, Dict, List, Optional, Sequence

from .configuration import InsightsConfig
from .dataset import (
    REGISTERED,
    InsightsDataset,
    as_utc,
    month_label,
    shift_months,
    trailing_months,
    utcnow,
)
from .fallback import (
    FALLBACK_EVENT_INSIGHTS,
    FALLBACK_FEEDBACK_INSIGHTS,
    FALLBACK_TASK_INSIGHTS,
    FALLBACK_VOLUNTEER_INSIGHTS,
)
from .models import (
    CategoryCount,
    ChartPoint,
    DashboardStats,
    EventEngagement,
    EventInsights,
    EventSatisfaction,
    EventStats,
    EventTypeTasks,
    FeedbackInsights,
    MonthCount,
    RatedEvent,
    RatingBucket,
    SkillCount,
    StatusCount,
    TaskInsights,
    VolunteerInsights,
    VolunteerProfile,
)
from .repository import InsightsDataRepository, TableNotFoundError

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_FALLBACK = "fallback"

DASHBOARD_TASK_STATUSES = ("unassigned", "assigned", "inprogress", "complete")
EVENT_STATS_TASK_STATUSES = ("complete", "inprogress", "assigned", "unassigned")
# The event detail page counts the to-do/doing/done vocabulary.
EVENT_SUMMARY_DONE_STATUS = "done"
RECOMMENDATION_POOL = 3


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def _ratio_percent(part: float, whole: float) -> float:
    if not whole or not part:
        return 0
    return part / whole * 100


def compare_event_types(physical: int, virtual: int) -> str:
    if physical == 0 and virtual == 0:
        return "No task data available for comparison"
    if virtual == 0:
        return "All tasks are from physical events"
    if physical == 0:
        return "All tasks are from virtual events"
    # Measured against virtual in both directions.
    diff = _js_round((physical - virtual) / virtual * 100)
    if diff > 0:
        return f"Physical events have {diff}% more tasks than virtual events"
    if diff < 0:
        return f"Virtual events have {abs(diff)}% more tasks than physical events"
    return "Physical and virtual events have the same number of tasks"


class InsightsAggregator:
    """
    Reduces fetched rows into the chart shapes of the insights screens.

    All reports look at past events only: status in the configured completed
    set and ``end_date`` before ``now``. Output is deterministic for identical
    input rows; ties in ranked lists break on id or name.
    """

    def __init__(self, dataset: InsightsDataset, config: Optional[InsightsConfig] = None) -> None:
        self.dataset = dataset
        self.config = config or InsightsConfig()

    @property
    def _statuses(self) -> Sequence[str]:
        return self.config.completed_statuses

    def event_insights(self, now: datetime) -> EventInsights:
        now = as_utc(now)
        data = self.dataset
        past = data.past_events(now, self._statuses)
        past_ids = {event.id for event in past}

        total = len(data.events)
        completed = len(past)
        active = sum(1 for event in data.events if event.status == "published" and as_utc(event.end_date) > now)

        registered = list(data.registrations_for(past_ids, REGISTERED))
        volunteer_counts: Dict[int, int] = defaultdict(int)
        for registration in registered:
            volunteer_counts[registration.event_id] += 1

        engagement = []
        for event_id, count in volunteer_counts.items():
            event = data.event(event_id)
            max_volunteers = (event.max_volunteers if event else None) or 0
            engagement.append(
                EventEngagement(
                    id=event_id,
                    title=event.title if event else "Unknown",
                    volunteer_count=count,
                    max_volunteers=max_volunteers,
                    engagement_rate=_ratio_percent(count, max_volunteers),
                )
            )
        engagement.sort(key=lambda item: (-item.volunteer_count, item.id))

        ratings: Dict[int, List[int]] = defaultdict(list)
        for registration in data.registrations_for(past_ids):
            if registration.star_rating is not None:
                ratings[registration.event_id].append(registration.star_rating)
        satisfaction = [
            EventSatisfaction(
                id=event_id,
                title=data.event(event_id).title if data.event(event_id) else "Unknown",
                satisfaction_rate=mean(values),
                feedback_count=len(values),
            )
            for event_id, values in ratings.items()
        ]
        satisfaction.sort(key=lambda item: (-item.satisfaction_rate, item.id))

        category_counts: Dict[str, int] = {}
        for event in past:
            category_counts.setdefault(event.event_category or "Other", 0)
        for registration in registered:
            event = data.event(registration.event_id)
            category_counts[event.event_category or "Other"] += 1
        preferences = sorted(
            (CategoryCount(type=name, count=count) for name, count in category_counts.items()),
            key=lambda item: (-item.count, item.type),
        )

        months = trailing_months(now, 12)
        buckets = {key: 0 for key in months}
        for event in data.completed_events(self._statuses):
            end = as_utc(event.end_date)
            key = (end.year, end.month)
            if key in buckets:
                buckets[key] += 1
        completion_over_time = [ChartPoint(name=month_label(year, month), value=buckets[(year, month)]) for year, month in months]

        top_n = self.config.top_n
        return EventInsights(
            total_events=total,
            active_events=active,
            completed_events=completed,
            completion_rate=_ratio_percent(completed, total),
            top_events=tuple(engagement[:top_n]),
            satisfaction_rates=tuple(satisfaction[:top_n]),
            event_completion_over_time=tuple(completion_over_time),
            event_type_preferences=tuple(preferences),
        )

    def volunteer_insights(self, now: datetime) -> VolunteerInsights:
        now = as_utc(now)
        data = self.dataset
        past_ids = data.past_event_ids(now, self._statuses)

        total = len(data.volunteers)
        active = len(data.volunteer_ids(data.registrations_for(past_ids, REGISTERED)))
        participating = {
            registration.volunteer_id
            for registration in data.registrations
            if registration.status == REGISTERED and registration.volunteer_id
        }

        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        new_this_month = sum(
            1 for volunteer in data.volunteers if volunteer.created_at and as_utc(volunteer.created_at) >= month_start
        )

        growth_start = shift_months(now, -6)
        growth: Dict[tuple, int] = defaultdict(int)
        for volunteer in data.volunteers:
            if not volunteer.created_at:
                continue
            created = as_utc(volunteer.created_at)
            if created >= growth_start:
                growth[(created.year, created.month)] += 1
        volunteer_growth = [
            MonthCount(month=month_label(year, month, with_year=True), count=count)
            for (year, month), count in sorted(growth.items())
        ]

        engaged = data.volunteer_ids(data.registrations_for(past_ids))
        skill_counts: Dict[str, int] = defaultdict(int)
        for row in data.skills_for(engaged):
            skill_counts[row.skill or "Unknown"] += 1
        distribution = sorted(
            (SkillCount(skill=name, count=count) for name, count in skill_counts.items()),
            key=lambda item: (-item.count, item.skill),
        )

        return VolunteerInsights(
            total_volunteers=total,
            active_volunteers=active,
            new_volunteers_this_month=new_this_month,
            participation_rate=_ratio_percent(len(participating), total),
            volunteer_growth=tuple(volunteer_growth),
            skill_distribution=tuple(distribution),
        )

    def task_insights(self, now: datetime) -> TaskInsights:
        data = self.dataset
        past_ids = data.past_event_ids(as_utc(now), self._statuses)
        tasks = data.tasks_for(past_ids)

        physical = virtual = 0
        for task in tasks:
            event = data.event(task.event_id)
            kind = (event.location_type or "").lower() if event else ""
            if kind == "physical":
                physical += 1
            elif kind == "virtual":
                virtual += 1

        return TaskInsights(
            total_tasks=len(tasks),
            event_type_tasks=EventTypeTasks(physical=physical, virtual=virtual),
            comparison_text=compare_event_types(physical, virtual),
        )

    def feedback_insights(self, now: datetime) -> FeedbackInsights:
        data = self.dataset
        past_ids = data.past_event_ids(as_utc(now), self._statuses)
        rated = [
            registration
            for registration in data.registrations_for(past_ids)
            if registration.star_rating is not None
        ]

        per_event: Dict[int, List[int]] = defaultdict(list)
        distribution = {stars: 0 for stars in range(1, 6)}
        for registration in rated:
            per_event[registration.event_id].append(registration.star_rating)
            if registration.star_rating in distribution:
                distribution[registration.star_rating] += 1

        top_rated = sorted(
            (
                RatedEvent(
                    id=event_id,
                    title=data.event(event_id).title if data.event(event_id) else "Unknown",
                    avg_rating=mean(values),
                    feedback_count=len(values),
                )
                for event_id, values in per_event.items()
            ),
            key=lambda item: (-item.avg_rating, item.id),
        )

        return FeedbackInsights(
            total_feedbacks=len(rated),
            avg_rating=mean(r.star_rating for r in rated) if rated else 0,
            top_rated_events=tuple(top_rated[: self.config.top_n]),
            rating_distribution=tuple(RatingBucket(stars=stars, count=count) for stars, count in distribution.items()),
        )


@dataclass(frozen=True)
class InsightsReport:
    data: Any
    source: str

    def as_dict(self) -> Dict[str, Any]:
        return {"data": self.data.as_dict(), "source": self.source}


class InsightsService:
    """
    Loads rows for one report and aggregates them, substituting the demo
    dataset when the hosted tables are missing.
    """

    def __init__(self, repository: InsightsDataRepository, config: Optional[InsightsConfig] = None) -> None:
        self.repository = repository
        self.config = config or InsightsConfig()

    def event_insights(self, now: Optional[datetime] = None) -> InsightsReport:
        def build() -> EventInsights:
            dataset = InsightsDataset(
                events=self.repository.load_events(),
                registrations=self.repository.load_registrations(),
            )
            return InsightsAggregator(dataset, self.config).event_insights(now or utcnow())

        return self._run("event", build, FALLBACK_EVENT_INSIGHTS)

    def volunteer_insights(self, now: Optional[datetime] = None) -> InsightsReport:
        def build() -> VolunteerInsights:
            dataset = InsightsDataset(
                events=self.repository.load_events(),
                volunteers=self.repository.load_volunteers(),
                registrations=self.repository.load_registrations(),
                volunteer_skills=self.repository.load_volunteer_skills(),
            )
            return InsightsAggregator(dataset, self.config).volunteer_insights(now or utcnow())

        return self._run("volunteer", build, FALLBACK_VOLUNTEER_INSIGHTS)

    def task_insights(self, now: Optional[datetime] = None) -> InsightsReport:
        def build() -> TaskInsights:
            dataset = InsightsDataset(
                events=self.repository.load_events(),
                tasks=self.repository.load_tasks(),
            )
            return InsightsAggregator(dataset, self.config).task_insights(now or utcnow())

        return self._run("task", build, FALLBACK_TASK_INSIGHTS)

    def feedback_insights(self, now: Optional[datetime] = None) -> InsightsReport:
        def build() -> FeedbackInsights:
            dataset = InsightsDataset(
                events=self.repository.load_events(),
                registrations=self.repository.load_registrations(),
            )
            return InsightsAggregator(dataset, self.config).feedback_insights(now or utcnow())

        return self._run("feedback", build, FALLBACK_FEEDBACK_INSIGHTS)

    def _run(self, name: str, build: Callable[[], Any], fallback: Any) -> InsightsReport:
        try:
            return InsightsReport(data=build(), source=SOURCE_DATABASE)
        except TableNotFoundError as exc:
            if not self.config.fallback_enabled:
                raise
            logger.warning("Serving fallback %s insights: %s", name, exc)
            return InsightsReport(data=fallback, source=SOURCE_FALLBACK)


class DashboardService:
    """Overview cards, event statistics and summaries backed by live queries."""

    def __init__(self, repository) -> None:
        self.repository = repository

    def dashboard_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or utcnow()
        distribution = [
            StatusCount(name=status, value=self.repository.count_tasks(status=status))
            for status in DASHBOARD_TASK_STATUSES
        ]
        completed = next(item.value for item in distribution if item.name == "complete")
        return DashboardStats(
            total_tasks=self.repository.count_tasks(),
            completed_tasks=completed,
            live_events=self.repository.count_live_events(now),
            task_status_data=tuple(distribution),
        )

    def event_summary(self, event_id: int) -> Dict[str, Any]:
        event = self.repository.get_event(event_id)
        tasks = self.repository.tasks_for_event(event_id)
        registered = self.repository.count_registrations(event_id)
        capacity = event.max_volunteers or 0
        return {
            "eventId": event.id,
            "taskCount": len(tasks),
            "completedTasks": sum(1 for task in tasks if task.task_status == EVENT_SUMMARY_DONE_STATUS),
            "registeredVolunteers": registered,
            "maxVolunteers": capacity,
            "capacity": f"{registered}/{capacity}",
        }

    def event_stats(self, event_id: int) -> EventStats:
        event = self.repository.get_event(event_id)
        tasks = self.repository.tasks_for_event(event_id)

        counts = {status: 0 for status in EVENT_STATS_TASK_STATUSES}
        for task in tasks:
            if task.task_status in counts:
                counts[task.task_status] += 1
        total = max(len(tasks), 1)
        shares = {status: count / total * 100 for status, count in counts.items()}

        registered = self.repository.count_registrations(event_id)
        max_volunteers = event.max_volunteers or 0
        fill_rate = registered / max_volunteers * 100 if max_volunteers > 0 else 0

        return EventStats(
            task_counts=counts,
            task_shares=shares,
            registered=registered,
            max_volunteers=max_volunteers,
            fill_rate=fill_rate,
            recommended_volunteers=tuple(self.recommended_volunteers(event_id)),
        )

    def recommended_volunteers(self, event_id: int) -> List[VolunteerProfile]:
        """
        Newest directory volunteers not already holding a registration row for
        the event. At most three candidates are considered.
        """

        candidates = self.repository.recent_volunteers(RECOMMENDATION_POOL)
        taken = self.repository.registration_volunteer_ids(event_id)
        remaining = [volunteer for volunteer in candidates if volunteer.id not in taken]
        skills = self.repository.skills_for_volunteers([volunteer.id for volunteer in remaining])
        return [VolunteerProfile(volunteer=volunteer, skills=skills.get(volunteer.id, [])) for volunteer in remaining]

    def event_volunteers(self, event_id: int, search: Optional[str] = None) -> List[VolunteerProfile]:
        self.repository.get_event(event_id)
        registered_ids = sorted(self.repository.registration_volunteer_ids(event_id, status=REGISTERED))
        volunteers = self.repository.volunteers_by_auth_ids(registered_ids)
        if search:
            needle = search.lower()
            volunteers = [
                volunteer
                for volunteer in volunteers
                if any(needle in (value or "").lower() for value in (volunteer.full_name, volunteer.email, volunteer.organization))
            ]
        skills = self.repository.skills_for_volunteers([volunteer.volunteer_id for volunteer in volunteers])
        return [
            VolunteerProfile(volunteer=volunteer, skills=skills.get(volunteer.volunteer_id, []))
            for volunteer in volunteers
        ]

    def volunteer_detail(self, volunteer_id: str) -> Dict[str, Any]:
        """Directory volunteer with skills, registered events and tasks keyed by its auth id."""

        volunteer = self.repository.get_volunteer(volunteer_id)
        key = volunteer.volunteer_id or volunteer.id
        skills = self.repository.skills_for_volunteers([key]).get(key, [])
        events = [
            {**event.as_dict(), "registration": registration.as_dict()}
            for registration, event in self.repository.registered_events_for_volunteer(key)
        ]
        tasks = [task.as_dict() for task in self.repository.tasks_for_volunteer(key)]
        payload = VolunteerProfile(volunteer=volunteer, skills=skills).as_dict()
        payload["events"] = events
        payload["tasks"] = tasks
        return payload
