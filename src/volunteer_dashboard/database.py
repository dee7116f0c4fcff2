"""
SQLAlchemy description of the hosted volunteer database.

The schema belongs to the hosted backend; these ``Table`` objects only describe
the columns this service reads and writes. ``create_schema`` exists so tests
and local demos can stand up an empty copy.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import JSON as SAJSON
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.engine import Engine

from .configuration import DatabaseConfig

metadata = MetaData()

# text[] on the hosted Postgres, JSON everywhere else
string_list_type = SAJSON().with_variant(ARRAY(String), "postgresql")

events = Table(
    "events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("location", String(255), nullable=False),
    Column("location_type", String(32), nullable=False),
    Column("description", Text),
    Column("thumbnail_image", Text),
    Column("event_category", String(128), nullable=False),
    Column("start_date", DateTime(timezone=True), nullable=False),
    Column("end_date", DateTime(timezone=True), nullable=False),
    Column("registration_deadline", DateTime(timezone=True)),
    Column("max_volunteers", Integer),
    Column("status", String(32), nullable=False),
    Column("email_sent", Boolean, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

skills = Table(
    "skills",
    metadata,
    Column("skill_id", Integer, primary_key=True, autoincrement=True),
    Column("skill", String(128), nullable=False),
    Column("skill_icon", String(255)),
)

tasks = Table(
    "tasks",
    metadata,
    Column("task_id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE")),
    Column("volunteer_id", String(64)),
    Column("volunteer_email", String(255)),
    Column("task_description", Text, nullable=False),
    Column("task_status", String(32), nullable=False),
    Column("task_feedback", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
)

task_skills = Table(
    "task_skills",
    metadata,
    Column("task_id", Integer, ForeignKey("tasks.task_id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.skill_id", ondelete="CASCADE"), primary_key=True),
)


def _volunteer_columns():
    return [
        Column("email", String(255)),
        Column("full_name", String(255)),
        Column("mobile_number", String(64)),
        Column("age", Integer),
        Column("organization", String(255)),
        Column("work_types", string_list_type),
        Column("preferred_location", String(255)),
        Column("availability_start_date", DateTime(timezone=True)),
        Column("availability_end_date", DateTime(timezone=True)),
        Column("time_preference", String(64)),
        Column("days_available", string_list_type),
        Column("onboarding_step", Integer),
        Column("onboarding_completed", Boolean),
        Column("created_at", DateTime(timezone=True), server_default=func.now()),
        Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    ]


volunteers = Table(
    "volunteers",
    metadata,
    Column("id", String(64), primary_key=True),
    *_volunteer_columns(),
)

volunteers_non_auth = Table(
    "volunteers_non_auth",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("volunteer_id", String(64), nullable=False),
    *_volunteer_columns(),
)

volunteer_event = Table(
    "volunteer_event",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("volunteer_id", String(64)),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE")),
    Column("status", String(32), nullable=False),
    Column("feedback", Text),
    Column("feedback_submitted_at", DateTime(timezone=True)),
    Column("star_rating", Integer),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

volunteer_skills = Table(
    "volunteer_skills",
    metadata,
    Column("volunteer_id", String(64), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.skill_id", ondelete="CASCADE"), primary_key=True),
)

chat_messages = Table(
    "chat_messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
    Column("volunteer_id", String(64)),
    Column("volunteer_non_auth_id", String(64)),
    Column("volunteer_name", String(255), nullable=False),
    Column("volunteer_email", String(255)),
    Column("message", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)

volunteer_notifications = Table(
    "volunteer_notifications",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("volunteer_email", String(255), nullable=False),
    Column("event_id", Integer, ForeignKey("events.id", ondelete="CASCADE")),
    Column("notification_type", String(64), nullable=False),
    Column("sent_at", DateTime(timezone=True)),
)


def build_engine(config: DatabaseConfig) -> Optional[Engine]:
    if not config.url:
        return None
    engine = create_engine(config.url, echo=config.echo, future=True)
    if config.create_tables:
        create_schema(engine)
    return engine


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)
