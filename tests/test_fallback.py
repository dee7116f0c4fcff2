from __future__ import annotations

from datetime import datetime, timezone

import pytest

from volunteer_dashboard.configuration import InsightsConfig
from volunteer_dashboard.fallback import (
    FALLBACK_EVENT_INSIGHTS,
    FALLBACK_FEEDBACK_INSIGHTS,
    FALLBACK_TASK_INSIGHTS,
    FALLBACK_VOLUNTEER_INSIGHTS,
)
from volunteer_dashboard.repository import (
    BackendError,
    InsightsDataRepository,
    SQLDashboardRepository,
    TableNotFoundError,
    is_table_not_found_error,
)
from volunteer_dashboard.service import InsightsService

from .conftest import make_engine

NOW = datetime(2024, 6, 15, tzinfo=timezone.utc)


class MissingTablesRepository(InsightsDataRepository):
    def load_events(self):
        raise TableNotFoundError('Error fetching total events: relation "public.events" does not exist')

    load_tasks = load_volunteers = load_registrations = load_volunteer_skills = load_events


class BrokenRepository(InsightsDataRepository):
    def load_events(self):
        raise BackendError("Error fetching events: connection refused")

    load_tasks = load_volunteers = load_registrations = load_volunteer_skills = load_events


@pytest.mark.parametrize(
    "message, expected",
    [
        ('relation "events" does not exist', True),
        ("relation volunteer_event not found", True),
        ("no such table: events", True),
        ("relation events is locked", False),
        ("permission denied for table events", False),
        ("", False),
        (None, False),
    ],
)
def test_is_table_not_found_error(message, expected):
    assert is_table_not_found_error(message) is expected


@pytest.mark.parametrize(
    "report, fallback",
    [
        ("event_insights", FALLBACK_EVENT_INSIGHTS),
        ("volunteer_insights", FALLBACK_VOLUNTEER_INSIGHTS),
        ("task_insights", FALLBACK_TASK_INSIGHTS),
        ("feedback_insights", FALLBACK_FEEDBACK_INSIGHTS),
    ],
)
def test_missing_tables_serve_fallback_verbatim(report, fallback):
    service = InsightsService(MissingTablesRepository())

    result = getattr(service, report)(NOW)

    assert result.source == "fallback"
    assert result.data is fallback
    assert result.as_dict()["data"] == fallback.as_dict()


def test_fallback_event_payload_matches_demo_values():
    payload = InsightsService(MissingTablesRepository()).event_insights(NOW).as_dict()

    assert payload["source"] == "fallback"
    data = payload["data"]
    assert (data["totalEvents"], data["activeEvents"], data["completedEvents"], data["completionRate"]) == (45, 12, 33, 73)
    assert data["topEvents"][0]["title"] == "Annual Charity Gala"
    assert len(data["eventCompletionOverTime"]) == 12


def test_fallback_can_be_disabled():
    service = InsightsService(MissingTablesRepository(), InsightsConfig(fallback_enabled=False))

    with pytest.raises(TableNotFoundError):
        service.task_insights(NOW)


def test_other_backend_errors_propagate():
    service = InsightsService(BrokenRepository())

    with pytest.raises(BackendError) as excinfo:
        service.event_insights(NOW)
    assert not isinstance(excinfo.value, TableNotFoundError)


def test_sqlite_without_schema_falls_back():
    engine = make_engine()
    try:
        repository = SQLDashboardRepository(engine)
        with pytest.raises(TableNotFoundError):
            repository.load_events()

        result = InsightsService(repository).volunteer_insights(NOW)
        assert result.source == "fallback"
        assert result.data == FALLBACK_VOLUNTEER_INSIGHTS
    finally:
        engine.dispose()


def test_existing_schema_reports_database_source(repository):
    result = InsightsService(repository).event_insights(NOW)

    assert result.source == "database"
    assert result.data.total_events == 0
