from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response

from ..dataset import utcnow
from ..dependencies import get_dashboard_service, get_repository
from ..models import EventRecord
from ..repository import SQLDashboardRepository
from ..schemas import EventForm
from ..service import DashboardService

router = APIRouter(tags=["events"])

EVENT_STATUSES = ("draft", "published", "archived")


def registration_progress(registered: int, max_volunteers: Optional[int]) -> float:
    if not max_volunteers:
        return 0
    return min(registered / max_volunteers * 100, 100)


def _event_listing(event: EventRecord, registered: int) -> Dict[str, Any]:
    payload = event.as_dict()
    payload["registeredCount"] = registered
    payload["progress"] = registration_progress(registered, event.max_volunteers)
    return payload


@router.get("/events")
def list_events(
    search: Optional[str] = None,
    status: Optional[str] = None,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    events = repository.list_events(search=search, status=status)
    counts = repository.registration_counts([event.id for event in events])
    by_status: Dict[str, List[int]] = {name: [] for name in EVENT_STATUSES}
    for event in events:
        by_status.setdefault(event.status, []).append(event.id)
    return {
        "events": [_event_listing(event, counts.get(event.id, 0)) for event in events],
        "total": len(events),
        "byStatus": by_status,
    }


@router.get("/events/live")
def live_events(repository: SQLDashboardRepository = Depends(get_repository)) -> List[Dict[str, Any]]:
    return [event.as_dict() for event in repository.live_events(utcnow())]


@router.get("/events/recent")
def recent_events(
    limit: int = 5,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    return [event.as_dict() for event in repository.recent_events(limit)]


@router.post("/events", status_code=201)
def create_event(form: EventForm, repository: SQLDashboardRepository = Depends(get_repository)) -> Dict[str, Any]:
    return repository.create_event(form.to_values()).as_dict()


@router.get("/events/{event_id}")
def get_event(event_id: int, repository: SQLDashboardRepository = Depends(get_repository)) -> Dict[str, Any]:
    return repository.get_event(event_id).as_dict()


@router.put("/events/{event_id}")
def update_event(
    event_id: int,
    form: EventForm,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    return repository.update_event(event_id, form.to_values()).as_dict()


@router.delete("/events/{event_id}", status_code=204)
def delete_event(event_id: int, repository: SQLDashboardRepository = Depends(get_repository)) -> Response:
    repository.delete_event(event_id)
    return Response(status_code=204)


@router.get("/events/{event_id}/summary")
def event_summary(event_id: int, service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return service.event_summary(event_id)


@router.get("/events/{event_id}/stats")
def event_stats(event_id: int, service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return service.event_stats(event_id).as_dict()


@router.get("/events/{event_id}/volunteers")
def event_volunteers(
    event_id: int,
    search: Optional[str] = None,
    service: DashboardService = Depends(get_dashboard_service),
) -> List[Dict[str, Any]]:
    return [profile.as_dict() for profile in service.event_volunteers(event_id, search)]
