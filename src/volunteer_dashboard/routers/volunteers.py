from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..dependencies import get_dashboard_service, get_repository
from ..repository import SQLDashboardRepository
from ..service import DashboardService

router = APIRouter(tags=["volunteers"])


@router.get("/volunteers")
def list_volunteers(
    search: Optional[str] = None,
    organization: Optional[str] = None,
    sort: str = "created_at",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    volunteers, total = repository.list_volunteers(
        search=search,
        organization=organization,
        sort=sort,
        descending=order == "desc",
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    return {
        "volunteers": [volunteer.as_dict() for volunteer in volunteers],
        "total": total,
        "page": page,
        "perPage": per_page,
        "organizations": repository.organizations(),
    }


@router.get("/volunteers/overview")
def volunteer_overview(
    limit: int = 5,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    return [volunteer.as_dict() for volunteer in repository.recent_volunteers(limit)]


@router.get("/volunteers/{volunteer_id}")
def get_volunteer(volunteer_id: str, service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return service.volunteer_detail(volunteer_id)


@router.delete("/volunteers/{volunteer_id}", status_code=204)
def delete_volunteer(volunteer_id: str, repository: SQLDashboardRepository = Depends(get_repository)) -> Response:
    repository.delete_volunteer(volunteer_id)
    return Response(status_code=204)


@router.get("/skills")
def list_skills(repository: SQLDashboardRepository = Depends(get_repository)) -> List[Dict[str, Any]]:
    return [skill.as_dict() for skill in repository.list_skills()]
