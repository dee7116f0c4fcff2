from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from .models import (
    EventRecord,
    RegistrationRecord,
    TaskRecord,
    VolunteerRecord,
    VolunteerSkillRecord,
)

REGISTERED = "registered"


def as_utc(dt: datetime) -> datetime:
    """Treat naive timestamps as UTC; the hosted database stores timestamptz."""

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def shift_months(dt: datetime, months: int) -> datetime:
    """
    Move ``dt`` by a whole number of calendar months.

    The day is clamped to the last day of the target month, so March 31 minus
    one month is the last day of February.
    """

    index = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def month_label(year: int, month: int, with_year: bool = False) -> str:
    label = calendar.month_abbr[month]
    return f"{label} {year}" if with_year else label


def trailing_months(now: datetime, count: int) -> List[Tuple[int, int]]:
    """Return ``count`` (year, month) keys ending with the month of ``now``."""

    start = shift_months(now, -(count - 1))
    keys = []
    for offset in range(count):
        moment = shift_months(start.replace(day=1), offset)
        keys.append((moment.year, moment.month))
    return keys


@dataclass
class InsightsDataset:
    """
    Rows fetched for one insights report.

    Reports only fill the collections they need; everything defaults to empty.
    """

    events: Sequence[EventRecord] = field(default_factory=tuple)
    tasks: Sequence[TaskRecord] = field(default_factory=tuple)
    volunteers: Sequence[VolunteerRecord] = field(default_factory=tuple)
    registrations: Sequence[RegistrationRecord] = field(default_factory=tuple)
    volunteer_skills: Sequence[VolunteerSkillRecord] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        self.events = tuple(sorted(self.events, key=lambda event: event.id))
        self.tasks = tuple(self.tasks)
        self.volunteers = tuple(self.volunteers)
        self.registrations = tuple(self.registrations)
        self.volunteer_skills = tuple(self.volunteer_skills)
        self._events_by_id = {event.id: event for event in self.events}

    def event(self, event_id: Optional[int]) -> Optional[EventRecord]:
        if event_id is None:
            return None
        return self._events_by_id.get(event_id)

    def completed_events(self, statuses: Sequence[str]) -> Iterator[EventRecord]:
        allowed = set(statuses)
        for event in self.events:
            if event.status in allowed:
                yield event

    def past_events(self, now: datetime, statuses: Sequence[str]) -> List[EventRecord]:
        """Completed events whose end date lies before ``now``."""

        now = as_utc(now)
        return [event for event in self.completed_events(statuses) if as_utc(event.end_date) < now]

    def past_event_ids(self, now: datetime, statuses: Sequence[str]) -> Set[int]:
        return {event.id for event in self.past_events(now, statuses)}

    def registrations_for(
        self,
        event_ids: Set[int],
        status: Optional[str] = None,
    ) -> Iterator[RegistrationRecord]:
        for registration in self.registrations:
            if registration.event_id not in event_ids:
                continue
            if status is not None and registration.status != status:
                continue
            yield registration

    def volunteer_ids(self, registrations: Iterable[RegistrationRecord]) -> Set[str]:
        return {registration.volunteer_id for registration in registrations if registration.volunteer_id}

    def tasks_for(self, event_ids: Set[int]) -> List[TaskRecord]:
        return [task for task in self.tasks if task.event_id in event_ids]

    def skills_for(self, volunteer_ids: Set[str]) -> List[VolunteerSkillRecord]:
        return [row for row in self.volunteer_skills if row.volunteer_id in volunteer_ids]
