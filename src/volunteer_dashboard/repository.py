from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError

from . import database as db
from .configuration import DatabaseConfig
from .dataset import REGISTERED, as_utc, utcnow
from .models import (
    ChatMessageRecord,
    EventRecord,
    RegistrationRecord,
    SkillRecord,
    TaskRecord,
    VolunteerRecord,
    VolunteerSkillRecord,
)

logger = logging.getLogger(__name__)

VOLUNTEER_SORT_FIELDS = {"full_name", "email", "organization", "preferred_location", "created_at"}


class BackendError(RuntimeError):
    """A call to the hosted database failed."""


class TableNotFoundError(BackendError):
    """The queried table does not exist on the hosted database."""


class RecordNotFoundError(LookupError):
    def __init__(self, entity: str, key: Any):
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key


def is_table_not_found_error(error: Any) -> bool:
    """
    Recognise "missing table" failures from their message.

    PostgreSQL reports ``relation "events" does not exist``; SQLite reports
    ``no such table: events``.
    """

    if not error:
        return False
    message = str(error)
    if "relation" in message and ("does not exist" in message or "not found" in message):
        return True
    return "no such table" in message


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        message = str(getattr(exc, "orig", None) or exc)
        if is_table_not_found_error(message):
            raise TableNotFoundError(f"Error {action}: {message}") from exc
        raise BackendError(f"Error {action}: {message}") from exc


LIKE_ESCAPE = "\\"


def _contains_pattern(search: str) -> str:
    """Substring LIKE pattern with the wildcards in ``search`` taken literally."""

    for char in (LIKE_ESCAPE, "%", "_"):
        search = search.replace(char, LIKE_ESCAPE + char)
    return f"%{search}%"


def _utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


class InsightsDataRepository:
    """
    Interface for loading the rows behind the insights reports.

    Implementations raise ``TableNotFoundError`` when a table is missing so the
    caller can switch to the demo datasets.
    """

    def load_events(self) -> Sequence[EventRecord]:
        raise NotImplementedError

    def load_tasks(self) -> Sequence[TaskRecord]:
        raise NotImplementedError

    def load_volunteers(self) -> Sequence[VolunteerRecord]:
        raise NotImplementedError

    def load_registrations(self) -> Sequence[RegistrationRecord]:
        raise NotImplementedError

    def load_volunteer_skills(self) -> Sequence[VolunteerSkillRecord]:
        raise NotImplementedError


class SQLDashboardRepository(InsightsDataRepository):
    """
    Table/query/insert/update/delete access to the hosted volunteer database.

    Every public method maps onto one call the dashboard screens issue. Errors
    are raised as ``BackendError``; there are no retries.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    # -- insights loaders -------------------------------------------------

    def load_events(self) -> Sequence[EventRecord]:
        return tuple(self._fetch(select(db.events).order_by(db.events.c.id), self._row_to_event, "fetching events"))

    def load_tasks(self) -> Sequence[TaskRecord]:
        return tuple(self._fetch(select(db.tasks).order_by(db.tasks.c.task_id), self._row_to_task, "fetching tasks"))

    def load_volunteers(self) -> Sequence[VolunteerRecord]:
        query = select(db.volunteers).order_by(db.volunteers.c.created_at)
        return tuple(self._fetch(query, self._row_to_volunteer, "fetching volunteers"))

    def load_registrations(self) -> Sequence[RegistrationRecord]:
        query = select(db.volunteer_event).order_by(db.volunteer_event.c.id)
        return tuple(self._fetch(query, self._row_to_registration, "fetching volunteer events"))

    def load_volunteer_skills(self) -> Sequence[VolunteerSkillRecord]:
        query = select(
            db.volunteer_skills.c.volunteer_id,
            db.volunteer_skills.c.skill_id,
            db.skills.c.skill,
        ).select_from(
            db.volunteer_skills.outerjoin(db.skills, db.volunteer_skills.c.skill_id == db.skills.c.skill_id)
        )
        return tuple(
            self._fetch(
                query,
                lambda row: VolunteerSkillRecord(
                    volunteer_id=str(row.volunteer_id),
                    skill_id=int(row.skill_id),
                    skill=row.skill,
                ),
                "fetching volunteer skills",
            )
        )

    # -- counts -----------------------------------------------------------

    def count_tasks(self, status: Optional[str] = None, event_id: Optional[int] = None) -> int:
        query = select(func.count()).select_from(db.tasks)
        if status is not None:
            query = query.where(db.tasks.c.task_status == status)
        if event_id is not None:
            query = query.where(db.tasks.c.event_id == event_id)
        return self._scalar(query, "counting tasks")

    def count_live_events(self, now: datetime) -> int:
        query = (
            select(func.count())
            .select_from(db.events)
            .where(db.events.c.start_date <= now, db.events.c.end_date >= now)
        )
        return self._scalar(query, "counting live events")

    def count_registrations(self, event_id: int, status: str = REGISTERED) -> int:
        query = (
            select(func.count())
            .select_from(db.volunteer_event)
            .where(db.volunteer_event.c.event_id == event_id, db.volunteer_event.c.status == status)
        )
        return self._scalar(query, "counting registrations")

    def registration_counts(self, event_ids: Sequence[int], status: str = REGISTERED) -> Dict[int, int]:
        if not event_ids:
            return {}
        query = (
            select(db.volunteer_event.c.event_id, func.count().label("total"))
            .where(db.volunteer_event.c.event_id.in_(list(event_ids)), db.volunteer_event.c.status == status)
            .group_by(db.volunteer_event.c.event_id)
        )
        with _backend_call("counting registrations"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        return {int(row.event_id): int(row.total) for row in rows}

    # -- events -----------------------------------------------------------

    def list_events(self, search: Optional[str] = None, status: Optional[str] = None) -> List[EventRecord]:
        query = select(db.events).order_by(db.events.c.created_at.desc(), db.events.c.id.desc())
        if search:
            pattern = _contains_pattern(search)
            query = query.where(
                or_(
                    db.events.c.title.ilike(pattern, escape=LIKE_ESCAPE),
                    db.events.c.location.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if status:
            query = query.where(db.events.c.status == status)
        return self._fetch(query, self._row_to_event, "fetching events")

    def get_event(self, event_id: int) -> EventRecord:
        query = select(db.events).where(db.events.c.id == event_id)
        rows = self._fetch(query, self._row_to_event, "fetching event")
        if not rows:
            raise RecordNotFoundError("Event", event_id)
        return rows[0]

    def create_event(self, values: Mapping[str, Any]) -> EventRecord:
        payload = dict(values)
        payload.setdefault("email_sent", False)
        payload.setdefault("created_at", utcnow())
        event_id = self._insert(db.events, payload, "creating event")
        return self.get_event(event_id)

    def update_event(self, event_id: int, values: Mapping[str, Any]) -> EventRecord:
        self._update(db.events, db.events.c.id == event_id, values, "updating event", ("Event", event_id))
        return self.get_event(event_id)

    def delete_event(self, event_id: int) -> None:
        self._delete(db.events, db.events.c.id == event_id, "deleting event", ("Event", event_id))

    def mark_email_sent(self, event_id: int) -> None:
        self._update(db.events, db.events.c.id == event_id, {"email_sent": True}, "updating event email_sent status")

    def live_events(self, now: datetime) -> List[EventRecord]:
        query = (
            select(db.events)
            .where(db.events.c.start_date <= now, db.events.c.end_date >= now)
            .order_by(db.events.c.start_date)
        )
        return self._fetch(query, self._row_to_event, "fetching live events")

    def recent_events(self, limit: int = 5) -> List[EventRecord]:
        query = select(db.events).order_by(db.events.c.start_date.asc()).limit(limit)
        return self._fetch(query, self._row_to_event, "fetching recent events")

    # -- tasks ------------------------------------------------------------

    def list_tasks(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        event_id: Optional[int] = None,
        skill_ids: Optional[Sequence[int]] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Tuple[TaskRecord, Optional[str], Optional[str]]], int]:
        """
        Return ``((task, event_title, volunteer_name), ...)`` for one page plus
        the total number of matching tasks.
        """

        joined = db.tasks.outerjoin(db.events, db.tasks.c.event_id == db.events.c.id).outerjoin(
            db.volunteers_non_auth, db.tasks.c.volunteer_id == db.volunteers_non_auth.c.id
        )
        conditions = []
        if search:
            pattern = _contains_pattern(search)
            conditions.append(
                or_(
                    db.tasks.c.task_description.ilike(pattern, escape=LIKE_ESCAPE),
                    db.volunteers_non_auth.c.full_name.ilike(pattern, escape=LIKE_ESCAPE),
                    db.events.c.title.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if status:
            conditions.append(db.tasks.c.task_status == status)
        if event_id is not None:
            conditions.append(db.tasks.c.event_id == event_id)
        if skill_ids:
            tagged = select(db.task_skills.c.task_id).where(db.task_skills.c.skill_id.in_(list(skill_ids)))
            conditions.append(db.tasks.c.task_id.in_(tagged))

        query = (
            select(db.tasks, db.events.c.title.label("event_title"), db.volunteers_non_auth.c.full_name.label("volunteer_name"))
            .select_from(joined)
            .where(*conditions)
            .order_by(db.tasks.c.updated_at.desc(), db.tasks.c.task_id.desc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        count_query = select(func.count()).select_from(joined).where(*conditions)

        with _backend_call("fetching tasks"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
                total = int(connection.execute(count_query).scalar() or 0)
        return [(self._row_to_task(row), row.event_title, row.volunteer_name) for row in rows], total

    def get_task(self, task_id: int) -> TaskRecord:
        rows = self._fetch(select(db.tasks).where(db.tasks.c.task_id == task_id), self._row_to_task, "fetching task")
        if not rows:
            raise RecordNotFoundError("Task", task_id)
        return rows[0]

    def tasks_for_event(self, event_id: int) -> List[TaskRecord]:
        query = (
            select(db.tasks)
            .where(db.tasks.c.event_id == event_id)
            .order_by(db.tasks.c.created_at.desc(), db.tasks.c.task_id.desc())
        )
        return self._fetch(query, self._row_to_task, "fetching event tasks")

    def tasks_for_volunteer(self, volunteer_id: str) -> List[TaskRecord]:
        query = (
            select(db.tasks)
            .where(db.tasks.c.volunteer_id == volunteer_id)
            .order_by(db.tasks.c.updated_at.desc(), db.tasks.c.task_id.desc())
        )
        return self._fetch(query, self._row_to_task, "fetching volunteer tasks")

    def upcoming_tasks(self, limit: int = 5) -> List[TaskRecord]:
        query = (
            select(db.tasks)
            .where(db.tasks.c.task_status.in_(["unassigned", "assigned"]))
            .order_by(db.tasks.c.created_at.desc(), db.tasks.c.task_id.desc())
            .limit(limit)
        )
        return self._fetch(query, self._row_to_task, "fetching upcoming tasks")

    def create_task(self, values: Mapping[str, Any], skill_ids: Optional[Sequence[int]] = None) -> TaskRecord:
        now = utcnow()
        payload = dict(values)
        payload.setdefault("created_at", now)
        payload.setdefault("updated_at", now)
        with _backend_call("creating task"):
            with self.engine.begin() as connection:
                result = connection.execute(insert(db.tasks).values(**payload))
                task_id = int(result.inserted_primary_key[0])
                if skill_ids:
                    connection.execute(
                        insert(db.task_skills),
                        [{"task_id": task_id, "skill_id": skill_id} for skill_id in skill_ids],
                    )
        return self.get_task(task_id)

    def update_task(
        self,
        task_id: int,
        values: Mapping[str, Any],
        skill_ids: Optional[Sequence[int]] = None,
    ) -> TaskRecord:
        payload = dict(values)
        payload["updated_at"] = utcnow()
        with _backend_call("updating task"):
            with self.engine.begin() as connection:
                result = connection.execute(update(db.tasks).where(db.tasks.c.task_id == task_id).values(**payload))
                if result.rowcount == 0:
                    raise RecordNotFoundError("Task", task_id)
                if skill_ids is not None:
                    connection.execute(delete(db.task_skills).where(db.task_skills.c.task_id == task_id))
                    if skill_ids:
                        connection.execute(
                            insert(db.task_skills),
                            [{"task_id": task_id, "skill_id": skill_id} for skill_id in skill_ids],
                        )
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        with _backend_call("deleting task"):
            with self.engine.begin() as connection:
                connection.execute(delete(db.task_skills).where(db.task_skills.c.task_id == task_id))
                result = connection.execute(delete(db.tasks).where(db.tasks.c.task_id == task_id))
        if result.rowcount == 0:
            raise RecordNotFoundError("Task", task_id)

    def task_skill_map(self, task_ids: Sequence[int]) -> Dict[int, List[SkillRecord]]:
        if not task_ids:
            return {}
        query = (
            select(db.task_skills.c.task_id, db.skills)
            .select_from(db.task_skills.join(db.skills, db.task_skills.c.skill_id == db.skills.c.skill_id))
            .where(db.task_skills.c.task_id.in_(list(task_ids)))
            .order_by(db.skills.c.skill)
        )
        mapping: Dict[int, List[SkillRecord]] = {task_id: [] for task_id in task_ids}
        with _backend_call("fetching task skills"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        for row in rows:
            mapping[int(row.task_id)].append(self._row_to_skill(row))
        return mapping

    # -- volunteers -------------------------------------------------------

    def find_volunteer_id_by_email(self, email: str) -> Optional[str]:
        query = select(db.volunteers_non_auth.c.id).where(db.volunteers_non_auth.c.email == email).limit(1)
        with _backend_call("looking up volunteer"):
            with self.engine.connect() as connection:
                value = connection.execute(query).scalar()
        return str(value) if value is not None else None

    def list_volunteers(
        self,
        search: Optional[str] = None,
        organization: Optional[str] = None,
        sort: str = "created_at",
        descending: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[VolunteerRecord], int]:
        table = db.volunteers_non_auth
        conditions = []
        if search:
            pattern = _contains_pattern(search)
            conditions.append(
                or_(
                    table.c.full_name.ilike(pattern, escape=LIKE_ESCAPE),
                    table.c.email.ilike(pattern, escape=LIKE_ESCAPE),
                    table.c.organization.ilike(pattern, escape=LIKE_ESCAPE),
                    table.c.preferred_location.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
        if organization:
            conditions.append(table.c.organization == organization)

        column = table.c[sort if sort in VOLUNTEER_SORT_FIELDS else "created_at"]
        query = (
            select(table)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), table.c.id)
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        count_query = select(func.count()).select_from(table).where(*conditions)

        with _backend_call("fetching volunteers"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
                total = int(connection.execute(count_query).scalar() or 0)
        return [self._row_to_volunteer(row) for row in rows], total

    def organizations(self) -> List[str]:
        column = db.volunteers_non_auth.c.organization
        query = select(column).where(column.is_not(None), column != "").distinct().order_by(column)
        with _backend_call("fetching organizations"):
            with self.engine.connect() as connection:
                return [str(value) for value in connection.execute(query).scalars()]

    def get_volunteer(self, volunteer_id: str) -> VolunteerRecord:
        query = select(db.volunteers_non_auth).where(db.volunteers_non_auth.c.id == volunteer_id)
        rows = self._fetch(query, self._row_to_volunteer, "fetching volunteer")
        if not rows:
            raise RecordNotFoundError("Volunteer", volunteer_id)
        return rows[0]

    def delete_volunteer(self, volunteer_id: str) -> None:
        self._delete(
            db.volunteers_non_auth,
            db.volunteers_non_auth.c.id == volunteer_id,
            "deleting volunteer",
            ("Volunteer", volunteer_id),
        )

    def recent_volunteers(self, limit: int = 5) -> List[VolunteerRecord]:
        table = db.volunteers_non_auth
        query = select(table).order_by(table.c.created_at.desc(), table.c.id).limit(limit)
        return self._fetch(query, self._row_to_volunteer, "fetching volunteers")

    def volunteers_by_auth_ids(self, volunteer_ids: Sequence[str]) -> List[VolunteerRecord]:
        """Directory rows whose ``volunteer_id`` matches registration volunteer ids."""

        if not volunteer_ids:
            return []
        table = db.volunteers_non_auth
        query = select(table).where(table.c.volunteer_id.in_(list(volunteer_ids))).order_by(table.c.full_name)
        return self._fetch(query, self._row_to_volunteer, "fetching volunteers")

    def skills_for_volunteers(self, volunteer_ids: Sequence[str]) -> Dict[str, List[SkillRecord]]:
        if not volunteer_ids:
            return {}
        query = (
            select(db.volunteer_skills.c.volunteer_id, db.skills)
            .select_from(db.volunteer_skills.join(db.skills, db.volunteer_skills.c.skill_id == db.skills.c.skill_id))
            .where(db.volunteer_skills.c.volunteer_id.in_(list(volunteer_ids)))
            .order_by(db.skills.c.skill)
        )
        mapping: Dict[str, List[SkillRecord]] = {volunteer_id: [] for volunteer_id in volunteer_ids}
        with _backend_call("fetching volunteer skills"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        for row in rows:
            mapping.setdefault(str(row.volunteer_id), []).append(self._row_to_skill(row))
        return mapping

    def registration_volunteer_ids(self, event_id: int, status: Optional[str] = None) -> Set[str]:
        query = select(db.volunteer_event.c.volunteer_id).where(
            db.volunteer_event.c.event_id == event_id,
            db.volunteer_event.c.volunteer_id.is_not(None),
        )
        if status is not None:
            query = query.where(db.volunteer_event.c.status == status)
        with _backend_call("fetching event registrations"):
            with self.engine.connect() as connection:
                return {str(value) for value in connection.execute(query).scalars()}

    def registered_events_for_volunteer(self, volunteer_id: str) -> List[Tuple[RegistrationRecord, EventRecord]]:
        query = (
            select(
                db.volunteer_event.c.id.label("registration_id"),
                db.volunteer_event.c.volunteer_id,
                db.volunteer_event.c.status.label("registration_status"),
                db.volunteer_event.c.star_rating,
                db.volunteer_event.c.feedback,
                db.volunteer_event.c.feedback_submitted_at,
                db.volunteer_event.c.created_at.label("registered_at"),
                db.events,
            )
            .select_from(db.volunteer_event.join(db.events, db.volunteer_event.c.event_id == db.events.c.id))
            .where(db.volunteer_event.c.volunteer_id == volunteer_id, db.volunteer_event.c.status == REGISTERED)
            .order_by(db.volunteer_event.c.created_at.desc(), db.volunteer_event.c.id.desc())
        )
        with _backend_call("fetching volunteer events"):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        results = []
        for row in rows:
            registration = RegistrationRecord(
                id=int(row.registration_id),
                volunteer_id=row.volunteer_id,
                event_id=int(row.id),
                status=row.registration_status,
                star_rating=row.star_rating,
                feedback=row.feedback,
                feedback_submitted_at=_utc_or_none(row.feedback_submitted_at),
                created_at=_utc_or_none(row.registered_at),
            )
            results.append((registration, self._row_to_event(row)))
        return results

    def list_skills(self) -> List[SkillRecord]:
        return self._fetch(select(db.skills).order_by(db.skills.c.skill), self._row_to_skill, "fetching skills")

    # -- chat -------------------------------------------------------------

    def list_chat_messages(self, event_id: int) -> List[ChatMessageRecord]:
        query = (
            select(db.chat_messages)
            .where(db.chat_messages.c.event_id == event_id)
            .order_by(db.chat_messages.c.created_at.asc(), db.chat_messages.c.id.asc())
        )
        return self._fetch(query, self._row_to_chat_message, "fetching chat messages")

    def create_chat_message(self, values: Mapping[str, Any]) -> ChatMessageRecord:
        payload = dict(values)
        payload.setdefault("created_at", utcnow())
        message_id = self._insert(db.chat_messages, payload, "sending chat message")
        return self.get_chat_message(message_id)

    def get_chat_message(self, message_id: int) -> ChatMessageRecord:
        query = select(db.chat_messages).where(db.chat_messages.c.id == message_id)
        rows = self._fetch(query, self._row_to_chat_message, "fetching chat message")
        if not rows:
            raise RecordNotFoundError("Chat message", message_id)
        return rows[0]

    def delete_chat_message(self, message_id: int) -> ChatMessageRecord:
        message = self.get_chat_message(message_id)
        self._delete(db.chat_messages, db.chat_messages.c.id == message_id, "deleting chat message")
        return message

    # -- notifications ----------------------------------------------------

    def record_notification(
        self,
        volunteer_email: str,
        event_id: int,
        notification_type: str = "new_event",
        sent_at: Optional[datetime] = None,
    ) -> None:
        self._insert(
            db.volunteer_notifications,
            {
                "volunteer_email": volunteer_email,
                "event_id": event_id,
                "notification_type": notification_type,
                "sent_at": sent_at or utcnow(),
            },
            "recording notification",
        )

    # -- helpers ----------------------------------------------------------

    def _fetch(self, query, convert, action: str) -> list:
        with _backend_call(action):
            with self.engine.connect() as connection:
                rows = connection.execute(query).fetchall()
        return [convert(row) for row in rows]

    def _scalar(self, query, action: str) -> int:
        with _backend_call(action):
            with self.engine.connect() as connection:
                return int(connection.execute(query).scalar() or 0)

    def _insert(self, table, values: Mapping[str, Any], action: str) -> Any:
        with _backend_call(action):
            with self.engine.begin() as connection:
                result = connection.execute(insert(table).values(**values))
        return result.inserted_primary_key[0]

    def _update(self, table, condition, values: Mapping[str, Any], action: str, missing=None) -> None:
        with _backend_call(action):
            with self.engine.begin() as connection:
                result = connection.execute(update(table).where(condition).values(**values))
        if missing is not None and result.rowcount == 0:
            raise RecordNotFoundError(*missing)

    def _delete(self, table, condition, action: str, missing=None) -> None:
        with _backend_call(action):
            with self.engine.begin() as connection:
                result = connection.execute(delete(table).where(condition))
        if missing is not None and result.rowcount == 0:
            raise RecordNotFoundError(*missing)

    @staticmethod
    def _row_to_event(row: Row) -> EventRecord:
        return EventRecord(
            id=int(row.id),
            title=row.title,
            location=row.location,
            location_type=row.location_type,
            event_category=row.event_category,
            start_date=as_utc(row.start_date),
            end_date=as_utc(row.end_date),
            status=row.status,
            max_volunteers=row.max_volunteers,
            description=row.description,
            thumbnail_image=row.thumbnail_image,
            registration_deadline=_utc_or_none(row.registration_deadline),
            email_sent=bool(row.email_sent),
            created_at=_utc_or_none(row.created_at),
        )

    @staticmethod
    def _row_to_task(row: Row) -> TaskRecord:
        return TaskRecord(
            task_id=int(row.task_id),
            event_id=row.event_id,
            task_description=row.task_description,
            task_status=row.task_status,
            volunteer_id=row.volunteer_id,
            volunteer_email=row.volunteer_email,
            task_feedback=row.task_feedback,
            created_at=_utc_or_none(row.created_at),
            updated_at=_utc_or_none(row.updated_at),
        )

    @staticmethod
    def _row_to_volunteer(row: Row) -> VolunteerRecord:
        mapping = row._mapping
        return VolunteerRecord(
            id=str(mapping["id"]),
            email=mapping["email"],
            full_name=mapping["full_name"],
            mobile_number=mapping["mobile_number"],
            age=mapping["age"],
            organization=mapping["organization"],
            work_types=list(mapping["work_types"]) if mapping["work_types"] else None,
            preferred_location=mapping["preferred_location"],
            availability_start_date=_utc_or_none(mapping["availability_start_date"]),
            availability_end_date=_utc_or_none(mapping["availability_end_date"]),
            time_preference=mapping["time_preference"],
            days_available=list(mapping["days_available"]) if mapping["days_available"] else None,
            onboarding_step=mapping["onboarding_step"],
            onboarding_completed=mapping["onboarding_completed"],
            created_at=_utc_or_none(mapping["created_at"]),
            updated_at=_utc_or_none(mapping["updated_at"]),
            volunteer_id=mapping.get("volunteer_id"),
        )

    @staticmethod
    def _row_to_registration(row: Row) -> RegistrationRecord:
        return RegistrationRecord(
            id=int(row.id),
            volunteer_id=row.volunteer_id,
            event_id=row.event_id,
            status=row.status,
            star_rating=row.star_rating,
            feedback=row.feedback,
            feedback_submitted_at=_utc_or_none(row.feedback_submitted_at),
            created_at=_utc_or_none(row.created_at),
        )

    @staticmethod
    def _row_to_skill(row: Row) -> SkillRecord:
        return SkillRecord(skill_id=int(row.skill_id), skill=row.skill, skill_icon=row.skill_icon)

    @staticmethod
    def _row_to_chat_message(row: Row) -> ChatMessageRecord:
        return ChatMessageRecord(
            id=int(row.id),
            event_id=int(row.event_id),
            volunteer_name=row.volunteer_name,
            message=row.message,
            volunteer_id=row.volunteer_id,
            volunteer_non_auth_id=row.volunteer_non_auth_id,
            volunteer_email=row.volunteer_email,
            created_at=_utc_or_none(row.created_at),
        )


def build_repository(config: DatabaseConfig) -> Optional[SQLDashboardRepository]:
    engine = db.build_engine(config)
    if engine is None:
        logger.warning("DASHBOARD_DATABASE_URL is not configured; data endpoints are unavailable.")
        return None
    return SQLDashboardRepository(engine)
