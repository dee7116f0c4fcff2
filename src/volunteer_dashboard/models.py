from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class EventRecord:
    """
    Row of the ``events`` table.

    ``status`` is free text in the hosted schema. The event form writes
    draft/published/archived while the insights reports look for completed
    events, so no enum is enforced here.
    """

    id: int
    title: str
    location: str
    location_type: str
    event_category: str
    start_date: datetime
    end_date: datetime
    status: str
    max_volunteers: Optional[int] = None
    description: Optional[str] = None
    thumbnail_image: Optional[str] = None
    registration_deadline: Optional[datetime] = None
    email_sent: bool = False
    created_at: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TaskRecord:
    task_id: int
    event_id: Optional[int]
    task_description: str
    task_status: str
    volunteer_id: Optional[str] = None
    volunteer_email: Optional[str] = None
    task_feedback: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VolunteerRecord:
    """
    Row of ``volunteers`` or ``volunteers_non_auth``.

    Only the non-auth table carries ``volunteer_id``; it is ``None`` for rows
    read from ``volunteers``.
    """

    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    mobile_number: Optional[str] = None
    age: Optional[int] = None
    organization: Optional[str] = None
    work_types: Optional[List[str]] = None
    preferred_location: Optional[str] = None
    availability_start_date: Optional[datetime] = None
    availability_end_date: Optional[datetime] = None
    time_preference: Optional[str] = None
    days_available: Optional[List[str]] = None
    onboarding_step: Optional[int] = None
    onboarding_completed: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    volunteer_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RegistrationRecord:
    """Row of ``volunteer_event``: a registration plus optional post-event feedback."""

    id: int
    volunteer_id: Optional[str]
    event_id: Optional[int]
    status: str
    star_rating: Optional[int] = None
    feedback: Optional[str] = None
    feedback_submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SkillRecord:
    skill_id: int
    skill: str
    skill_icon: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VolunteerSkillRecord:
    volunteer_id: str
    skill_id: int
    skill: Optional[str] = None


@dataclass(frozen=True)
class ChatMessageRecord:
    id: int
    event_id: int
    volunteer_name: str
    message: str
    volunteer_id: Optional[str] = None
    volunteer_non_auth_id: Optional[str] = None
    volunteer_email: Optional[str] = None
    created_at: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Chart-ready shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventEngagement:
    id: int
    title: str
    volunteer_count: int
    max_volunteers: int
    engagement_rate: float


@dataclass(frozen=True)
class EventSatisfaction:
    id: int
    title: str
    satisfaction_rate: float
    feedback_count: int


@dataclass(frozen=True)
class ChartPoint:
    name: str
    value: float


@dataclass(frozen=True)
class CategoryCount:
    type: str
    count: int


@dataclass(frozen=True)
class EventInsights:
    total_events: int
    active_events: int
    completed_events: int
    completion_rate: float
    top_events: Sequence[EventEngagement] = field(default_factory=list)
    satisfaction_rates: Sequence[EventSatisfaction] = field(default_factory=list)
    event_completion_over_time: Sequence[ChartPoint] = field(default_factory=list)
    event_type_preferences: Sequence[CategoryCount] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return to_camel_dict(self)


@dataclass(frozen=True)
class MonthCount:
    month: str
    count: int


@dataclass(frozen=True)
class SkillCount:
    skill: str
    count: int


@dataclass(frozen=True)
class VolunteerInsights:
    total_volunteers: int
    active_volunteers: int
    new_volunteers_this_month: int
    participation_rate: float
    volunteer_growth: Sequence[MonthCount] = field(default_factory=list)
    skill_distribution: Sequence[SkillCount] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return to_camel_dict(self)


@dataclass(frozen=True)
class EventTypeTasks:
    physical: int
    virtual: int


@dataclass(frozen=True)
class TaskInsights:
    total_tasks: int
    event_type_tasks: EventTypeTasks
    comparison_text: str

    def as_dict(self) -> Dict[str, Any]:
        return to_camel_dict(self)


@dataclass(frozen=True)
class RatedEvent:
    id: int
    title: str
    avg_rating: float
    feedback_count: int


@dataclass(frozen=True)
class RatingBucket:
    stars: int
    count: int


@dataclass(frozen=True)
class FeedbackInsights:
    total_feedbacks: int
    avg_rating: float
    top_rated_events: Sequence[RatedEvent] = field(default_factory=list)
    rating_distribution: Sequence[RatingBucket] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return to_camel_dict(self)


@dataclass(frozen=True)
class StatusCount:
    name: str
    value: int


@dataclass(frozen=True)
class DashboardStats:
    total_tasks: int
    completed_tasks: int
    live_events: int
    task_status_data: Sequence[StatusCount] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return to_camel_dict(self)


@dataclass(frozen=True)
class VolunteerProfile:
    volunteer: VolunteerRecord
    skills: Sequence[SkillRecord] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        payload = self.volunteer.as_dict()
        payload["skills"] = [skill.as_dict() for skill in self.skills]
        return payload


@dataclass(frozen=True)
class EventStats:
    task_counts: Dict[str, int]
    task_shares: Dict[str, float]
    registered: int
    max_volunteers: int
    fill_rate: float
    recommended_volunteers: Sequence[VolunteerProfile] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "taskCounts": dict(self.task_counts),
            "taskShares": dict(self.task_shares),
            "registered": self.registered,
            "maxVolunteers": self.max_volunteers,
            "fillRate": self.fill_rate,
            "recommendedVolunteers": [profile.as_dict() for profile in self.recommended_volunteers],
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_camel_dict(obj: Any) -> Any:
    """
    Convert nested chart dataclasses into the camelCase JSON the dashboard
    charts consume (``volunteer_count`` -> ``volunteerCount``).
    """

    if is_dataclass(obj) and not isinstance(obj, type):
        return {_camel(item.name): to_camel_dict(getattr(obj, item.name)) for item in fields(obj)}
    if isinstance(obj, dict):
        return {key: to_camel_dict(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_camel_dict(item) for item in obj]
    if isinstance(obj, datetime):
        return obj.isoformat()
    return obj
