from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select

from volunteer_dashboard import database as db
from volunteer_dashboard.configuration import DEFAULT_ORGANIZER_ID
from volunteer_dashboard.dependencies import get_optional_repository
from volunteer_dashboard.repository import SQLDashboardRepository
from volunteer_dashboard.server import app

from .conftest import make_engine


def _event_body(now, **overrides):
    body = {
        "title": "Tree Planting",
        "location": "Griffith Park",
        "location_type": "physical",
        "event_category": "Environmental",
        "start_date": now.isoformat(),
        "end_date": (now + timedelta(hours=3)).isoformat(),
        "status": "draft",
        "thumbnail_image": "",
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_events_reports_progress_and_status_groups(seeded, client):
    payload = client.get("/events").json()

    assert payload["total"] == 2
    by_id = {event["id"]: event for event in payload["events"]}
    assert by_id[1]["registeredCount"] == 2
    assert by_id[1]["progress"] == pytest.approx(50.0)
    assert by_id[2]["progress"] == 0
    assert payload["byStatus"] == {"draft": [2], "published": [1], "archived": []}


def test_static_event_routes_are_not_shadowed(seeded, client):
    assert [event["id"] for event in client.get("/events/live").json()] == [1]
    assert [event["id"] for event in client.get("/events/recent").json()] == [1, 2]


def test_event_crud(client, now):
    created = client.post("/events", json=_event_body(now))
    assert created.status_code == 201
    event = created.json()
    assert event["max_volunteers"] == 25
    assert event["thumbnail_image"] is None

    updated = client.put(f"/events/{event['id']}", json=_event_body(now, status="published", max_volunteers=40))
    assert updated.json()["status"] == "published"
    assert updated.json()["max_volunteers"] == 40

    assert client.delete(f"/events/{event['id']}").status_code == 204
    missing = client.get(f"/events/{event['id']}")
    assert missing.status_code == 404
    assert "not found" in missing.json()["detail"]


def test_event_form_validation(client, now):
    response = client.post(
        "/events",
        json=_event_body(now, end_date=(now - timedelta(days=1)).isoformat()),
    )
    assert response.status_code == 422

    response = client.post("/events", json=_event_body(now, location_type="hybrid"))
    assert response.status_code == 422


def test_event_summary_and_stats(seeded, client):
    summary = client.get("/events/1/summary").json()
    assert summary == {
        "eventId": 1,
        "taskCount": 3,
        "completedTasks": 1,
        "registeredVolunteers": 2,
        "maxVolunteers": 4,
        "capacity": "2/4",
    }

    stats = client.get("/events/1/stats").json()
    assert stats["taskCounts"] == {"complete": 1, "inprogress": 0, "assigned": 1, "unassigned": 0}
    assert stats["taskShares"]["complete"] == pytest.approx(100 / 3)
    assert stats["fillRate"] == pytest.approx(50.0)
    recommended = stats["recommendedVolunteers"]
    assert [volunteer["id"] for volunteer in recommended] == ["na-2", "na-1"]
    assert [skill["skill"] for skill in recommended[0]["skills"]] == ["Cooking"]


def test_event_stats_for_zero_capacity_event(seeded, client):
    stats = client.get("/events/2/stats").json()

    assert stats["taskShares"] == {"complete": 0, "inprogress": 0, "assigned": 0, "unassigned": 100.0}
    assert stats["fillRate"] == 0


def test_event_volunteers(seeded, client):
    volunteers = client.get("/events/1/volunteers").json()
    assert [volunteer["full_name"] for volunteer in volunteers] == ["Ana Lopez"]
    assert [skill["skill"] for skill in volunteers[0]["skills"]] == ["Communication"]

    assert client.get("/events/1/volunteers", params={"search": "zzz"}).json() == []
    assert client.get("/events/99/volunteers").status_code == 404


def test_list_tasks_paginates(seeded, client):
    payload = client.get("/tasks", params={"per_page": 2}).json()

    assert payload["total"] == 4
    assert payload["totalPages"] == 2
    assert [task["task_id"] for task in payload["tasks"]] == [2, 4]
    assert payload["tasks"][0]["event_title"] == "Beach Cleanup"
    assert payload["tasks"][0]["volunteer_name"] == "Ben Okafor"
    assert {skill["skill"] for skill in payload["tasks"][0]["skills"]} == {"Leadership", "Cooking"}

    filtered = client.get("/tasks", params=[("skills", 1), ("status", "complete")]).json()
    assert [task["task_id"] for task in filtered["tasks"]] == [1]


def test_create_task_resolves_volunteer_email(seeded, client):
    response = client.post(
        "/events/2/tasks",
        json={
            "task_description": "Moderate chat",
            "task_status": "assigned",
            "assign_volunteer": True,
            "volunteer_email": "cy@example.com",
            "skills": [1],
        },
    )
    assert response.status_code == 201
    task = response.json()
    assert task["volunteer_id"] == "na-3"
    assert task["event_id"] == 2
    assert [skill["skill"] for skill in task["skills"]] == ["Communication"]

    unknown = client.put(
        f"/tasks/{task['task_id']}",
        json={"task_description": "Moderate chat", "task_status": "doing", "volunteer_email": "ghost@example.com"},
    ).json()
    assert unknown["volunteer_id"] is None
    assert unknown["task_status"] == "doing"
    assert [skill["skill"] for skill in unknown["skills"]] == ["Communication"]


def test_clearing_assign_flag_unassigns_task(seeded, client):
    reassigned = client.put(
        "/tasks/2",
        json={"task_description": "Collect bags", "task_status": "assigned", "assign_volunteer": True, "volunteer_id": "na-1"},
    ).json()
    assert reassigned["volunteer_id"] == "na-1"

    cleared = client.put(
        "/tasks/2",
        json={"task_description": "Collect bags", "task_status": "unassigned", "volunteer_id": "na-1"},
    ).json()
    assert cleared["volunteer_id"] is None
    assert cleared["volunteer_email"] is None
    assert cleared["task_status"] == "unassigned"


def test_task_form_requires_volunteer_when_assigning(seeded, client):
    response = client.post(
        "/events/1/tasks",
        json={"task_description": "Greet guests", "assign_volunteer": True},
    )
    assert response.status_code == 422


def test_task_routes(seeded, client):
    assert client.get("/tasks/3").json()["task_description"] == "Set up water station"
    assert [task["task_id"] for task in client.get("/tasks/upcoming").json()] == [4, 2]
    assert client.delete("/tasks/3").status_code == 204
    assert client.get("/tasks/3").status_code == 404
    assert client.post("/events/99/tasks", json={"task_description": "Nothing"}).status_code == 404


def test_volunteer_routes(seeded, client):
    listing = client.get("/volunteers", params={"organization": "Red Cross", "sort": "full_name", "order": "asc"}).json()
    assert [volunteer["id"] for volunteer in listing["volunteers"]] == ["na-1", "na-3"]
    assert listing["organizations"] == ["Food Bank", "Red Cross"]

    detail = client.get("/volunteers/na-1").json()
    assert [skill["skill"] for skill in detail["skills"]] == ["Communication"]
    assert [event["title"] for event in detail["events"]] == ["Beach Cleanup"]
    assert detail["tasks"] == []

    assert [volunteer["id"] for volunteer in client.get("/volunteers/overview").json()] == ["na-3", "na-2", "na-1"]
    assert [skill["skill"] for skill in client.get("/skills").json()] == ["Communication", "Cooking", "Leadership"]

    assert client.delete("/volunteers/na-2").status_code == 204
    assert client.get("/volunteers/na-2").status_code == 404


def test_dashboard_stats(seeded, client):
    stats = client.get("/dashboard/stats").json()

    assert stats["totalTasks"] == 4
    assert stats["completedTasks"] == 1
    assert stats["liveEvents"] == 1
    assert stats["taskStatusData"] == [
        {"name": "unassigned", "value": 1},
        {"name": "assigned", "value": 1},
        {"name": "inprogress", "value": 0},
        {"name": "complete", "value": 1},
    ]


def test_insights_report_source(seeded, client):
    payload = client.get("/insights/events").json()

    assert payload["source"] == "database"
    assert payload["data"]["totalEvents"] == 2


def test_insights_fall_back_without_tables(client):
    engine = make_engine()
    app.dependency_overrides[get_optional_repository] = lambda: SQLDashboardRepository(engine)
    try:
        for name in ("events", "volunteers", "tasks", "feedback"):
            payload = client.get(f"/insights/{name}").json()
            assert payload["source"] == "fallback"
        tasks = client.get("/insights/tasks").json()["data"]
        assert tasks["comparisonText"] == "Physical events have 67% more tasks than virtual events"

        failing = client.get("/events")
        assert failing.status_code == 502
        assert "no such table" in failing.json()["detail"]
    finally:
        engine.dispose()


def test_missing_database_returns_503(client):
    app.dependency_overrides[get_optional_repository] = lambda: None

    assert client.get("/events").status_code == 503


def test_send_event_emails(seeded, client, engine, mailer):
    response = client.post(
        "/api/send-event-emails",
        json={
            "volunteers": [{"email": "ana@example.com"}, {"email": "fail@example.com"}],
            "subject": "New event",
            "htmlContent": "<p>Join us</p>",
            "eventId": 2,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Emails sent to volunteers: 1 successful, 1 failed"
    assert body["results"] == [
        {"success": True, "email": "ana@example.com"},
        {"success": False, "email": "fail@example.com", "error": "Mailbox unavailable"},
    ]
    assert [sent[2] for sent in mailer.sent] == ["ana@example.com"]

    with engine.connect() as connection:
        notifications = connection.execute(select(db.volunteer_notifications)).fetchall()
        email_sent = connection.execute(select(db.events.c.email_sent).where(db.events.c.id == 2)).scalar()
    assert [(row.volunteer_email, row.notification_type) for row in notifications] == [("ana@example.com", "new_event")]
    assert email_sent is True


def test_send_event_emails_requires_fields(client):
    response = client.post("/api/send-event-emails", json={"subject": "Hi", "htmlContent": "<p></p>"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_chat_round_trip_publishes_changes(seeded, client):
    with client.websocket_connect("/events/1/chat/ws") as feed:
        posted = client.post("/events/1/chat", json={"message": "  Welcome!  "})
        assert posted.status_code == 201
        message = posted.json()
        assert message["message"] == "Welcome!"
        assert message["volunteer_id"] == DEFAULT_ORGANIZER_ID
        assert message["isOrganizer"] is True

        change = feed.receive_json()
        assert change["type"] == "INSERT"
        assert change["new"]["id"] == message["id"]

        assert client.delete(f"/chat/{message['id']}").status_code == 200
        assert feed.receive_json() == {"type": "DELETE", "old": {"id": message["id"]}}

    assert client.get("/events/1/chat").json() == []


def test_chat_lists_messages_oldest_first(seeded, client):
    client.post("/events/1/chat", json={"message": "first"})
    client.post(
        "/events/1/chat",
        json={"message": "second", "volunteer_id": "auth-1", "volunteer_name": "Ana Lopez"},
    )

    messages = client.get("/events/1/chat").json()
    assert [message["message"] for message in messages] == ["first", "second"]
    assert [message["isOrganizer"] for message in messages] == [True, False]


def test_chat_rejects_blank_messages(seeded, client):
    assert client.post("/events/1/chat", json={"message": "   "}).status_code == 422
    assert client.post("/events/99/chat", json={"message": "hello"}).status_code == 404


def test_upload_image_updates_thumbnail(seeded, client, settings):
    response = client.post(
        "/uploads/images",
        files={"file": ("poster.png", b"\x89PNG fake", "image/png")},
        data={"event_id": "1"},
    )

    assert response.status_code == 200
    url = response.json()["url"]
    assert url.startswith("/media/event_images/") and url.endswith(".png")
    assert client.get("/events/1").json()["thumbnail_image"] == url


def test_upload_image_rejections(client):
    not_image = client.post("/uploads/images", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert not_image.status_code == 400

    too_big = client.post("/uploads/images", files={"file": ("big.png", b"x" * 2048, "image/png")})
    assert too_big.status_code == 413


def test_upload_size_limit_is_inclusive(client, settings):
    limit = settings.media.max_bytes

    at_limit = client.post("/uploads/images", files={"file": ("edge.png", b"x" * limit, "image/png")})
    assert at_limit.status_code == 200

    one_over = client.post("/uploads/images", files={"file": ("over.png", b"x" * (limit + 1), "image/png")})
    assert one_over.status_code == 413
