from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from volunteer_dashboard import database as db
from volunteer_dashboard.chat import ChatBroadcaster
from volunteer_dashboard.configuration import DashboardSettings, MediaStorageConfig
from volunteer_dashboard.dependencies import (
    get_broadcaster,
    get_mailer,
    get_media_storage,
    get_optional_repository,
    get_settings,
)
from volunteer_dashboard.repository import SQLDashboardRepository
from volunteer_dashboard.server import app
from volunteer_dashboard.storage import LocalMediaStorage


class FakeMailer:
    """Records sends; addresses containing ``fail`` are rejected."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    def send_email(self, subject: str, html: str, to_email: str) -> Tuple[bool, str]:
        if "fail" in to_email:
            return False, "Mailbox unavailable"
        self.sent.append((subject, html, to_email))
        return True, ""


def make_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def insert_rows(engine, table, rows: List[Dict[str, Any]]) -> None:
    with engine.begin() as connection:
        for row in rows:
            connection.execute(table.insert(), row)


@pytest.fixture
def engine(tmp_path):
    # File backed so concurrent worker threads each get their own connection.
    engine = create_engine(
        f"sqlite:///{tmp_path / 'dashboard.db'}",
        connect_args={"check_same_thread": False},
    )
    db.create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine) -> SQLDashboardRepository:
    return SQLDashboardRepository(engine)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.fixture
def seeded(engine, now):
    """
    Small directory: two events, three directory volunteers, three skills and
    a handful of tasks and registrations.
    """

    insert_rows(
        engine,
        db.events,
        [
            {
                "id": 1,
                "title": "Beach Cleanup",
                "location": "Santa Monica",
                "location_type": "physical",
                "event_category": "Environmental",
                "start_date": now - timedelta(hours=2),
                "end_date": now + timedelta(hours=4),
                "max_volunteers": 4,
                "status": "published",
                "created_at": now - timedelta(days=3),
            },
            {
                "id": 2,
                "title": "Code Mentoring",
                "location": "Zoom",
                "location_type": "virtual",
                "event_category": "Educational",
                "start_date": now + timedelta(days=10),
                "end_date": now + timedelta(days=11),
                "max_volunteers": 0,
                "status": "draft",
                "created_at": now - timedelta(days=1),
            },
        ],
    )
    insert_rows(
        engine,
        db.skills,
        [
            {"skill_id": 1, "skill": "Communication", "skill_icon": "chat"},
            {"skill_id": 2, "skill": "Leadership", "skill_icon": "flag"},
            {"skill_id": 3, "skill": "Cooking", "skill_icon": "pan"},
        ],
    )
    insert_rows(
        engine,
        db.volunteers_non_auth,
        [
            {
                "id": "na-1",
                "volunteer_id": "auth-1",
                "email": "ana@example.com",
                "full_name": "Ana Lopez",
                "organization": "Red Cross",
                "preferred_location": "Los Angeles",
                "created_at": now - timedelta(days=30),
            },
            {
                "id": "na-2",
                "volunteer_id": "auth-2",
                "email": "ben@example.com",
                "full_name": "Ben Okafor",
                "organization": "Food Bank",
                "preferred_location": "Pasadena",
                "created_at": now - timedelta(days=20),
            },
            {
                "id": "na-3",
                "volunteer_id": "auth-3",
                "email": "cy@example.com",
                "full_name": "Cy Tran",
                "organization": "Red Cross",
                "preferred_location": "Burbank",
                "created_at": now - timedelta(days=10),
            },
        ],
    )
    insert_rows(
        engine,
        db.volunteer_skills,
        [
            {"volunteer_id": "auth-1", "skill_id": 1},
            {"volunteer_id": "na-2", "skill_id": 3},
            {"volunteer_id": "na-3", "skill_id": 2},
        ],
    )
    insert_rows(
        engine,
        db.volunteer_event,
        [
            {"id": 1, "volunteer_id": "auth-1", "event_id": 1, "status": "registered", "created_at": now - timedelta(days=2)},
            {"id": 2, "volunteer_id": "na-3", "event_id": 1, "status": "registered", "created_at": now - timedelta(days=1)},
            {"id": 3, "volunteer_id": "auth-2", "event_id": 1, "status": "not registered", "created_at": now},
        ],
    )
    insert_rows(
        engine,
        db.tasks,
        [
            {
                "task_id": 1,
                "event_id": 1,
                "task_description": "Hand out gloves",
                "task_status": "complete",
                "volunteer_id": "na-1",
                "created_at": now - timedelta(days=3),
                "updated_at": now - timedelta(days=3),
            },
            {
                "task_id": 2,
                "event_id": 1,
                "task_description": "Collect bags",
                "task_status": "assigned",
                "volunteer_id": "na-2",
                "created_at": now - timedelta(days=2),
                "updated_at": now - timedelta(hours=1),
            },
            {
                "task_id": 3,
                "event_id": 1,
                "task_description": "Set up water station",
                "task_status": "done",
                "created_at": now - timedelta(days=1),
                "updated_at": now - timedelta(days=1),
            },
            {
                "task_id": 4,
                "event_id": 2,
                "task_description": "Prepare slides",
                "task_status": "unassigned",
                "created_at": now - timedelta(hours=5),
                "updated_at": now - timedelta(hours=5),
            },
        ],
    )
    insert_rows(
        engine,
        db.task_skills,
        [
            {"task_id": 1, "skill_id": 1},
            {"task_id": 2, "skill_id": 2},
            {"task_id": 2, "skill_id": 3},
        ],
    )
    return engine


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def broadcaster() -> ChatBroadcaster:
    return ChatBroadcaster()


@pytest.fixture
def settings(tmp_path) -> DashboardSettings:
    return DashboardSettings(
        media=MediaStorageConfig(
            enable=True,
            provider="local_fs",
            local_directory=str(tmp_path / "media"),
            max_bytes=1024,
        )
    )


@pytest.fixture
def client(repository, mailer, broadcaster, settings):
    storage = LocalMediaStorage(settings.media)
    app.dependency_overrides[get_optional_repository] = lambda: repository
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_media_storage] = lambda: storage
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
