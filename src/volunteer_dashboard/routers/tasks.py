from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..dependencies import get_repository
from ..repository import SQLDashboardRepository
from ..schemas import TaskForm

router = APIRouter(tags=["tasks"])


def task_values(form: TaskForm, repository: SQLDashboardRepository) -> Dict[str, Any]:
    """
    Column values for a task row.

    An e-mail wins over an explicit volunteer id. Without an e-mail the id is
    only kept while ``assign_volunteer`` is set, so clearing the flag
    unassigns the task.
    """

    volunteer_email = str(form.volunteer_email) if form.volunteer_email else None
    if volunteer_email:
        volunteer_id = repository.find_volunteer_id_by_email(volunteer_email)
    elif form.assign_volunteer:
        volunteer_id = form.volunteer_id
    else:
        volunteer_id = None
    return {
        "task_description": form.task_description,
        "task_status": form.task_status,
        "volunteer_id": volunteer_id,
        "volunteer_email": volunteer_email,
        "task_feedback": form.task_feedback,
    }


def _task_payload(repository: SQLDashboardRepository, task_id: int) -> Dict[str, Any]:
    payload = repository.get_task(task_id).as_dict()
    payload["skills"] = [skill.as_dict() for skill in repository.task_skill_map([task_id])[task_id]]
    return payload


@router.get("/tasks")
def list_tasks(
    search: Optional[str] = None,
    status: Optional[str] = None,
    event_id: Optional[int] = None,
    skills: Optional[List[int]] = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=10, ge=1, le=100),
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    rows, total = repository.list_tasks(
        search=search,
        status=status,
        event_id=event_id,
        skill_ids=skills,
        offset=(page - 1) * per_page,
        limit=per_page,
    )
    skill_map = repository.task_skill_map([task.task_id for task, _, _ in rows])
    items = []
    for task, event_title, volunteer_name in rows:
        payload = task.as_dict()
        payload["event_title"] = event_title
        payload["volunteer_name"] = volunteer_name
        payload["skills"] = [skill.as_dict() for skill in skill_map.get(task.task_id, [])]
        items.append(payload)
    return {
        "tasks": items,
        "total": total,
        "page": page,
        "perPage": per_page,
        "totalPages": math.ceil(total / per_page) if total else 0,
    }


@router.get("/tasks/upcoming")
def upcoming_tasks(
    limit: int = 5,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    return [task.as_dict() for task in repository.upcoming_tasks(limit)]


@router.post("/events/{event_id}/tasks", status_code=201)
def create_task(
    event_id: int,
    form: TaskForm,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    repository.get_event(event_id)
    values = task_values(form, repository)
    values["event_id"] = event_id
    task = repository.create_task(values, form.skills)
    return _task_payload(repository, task.task_id)


@router.get("/tasks/{task_id}")
def get_task(task_id: int, repository: SQLDashboardRepository = Depends(get_repository)) -> Dict[str, Any]:
    return _task_payload(repository, task_id)


@router.put("/tasks/{task_id}")
def update_task(
    task_id: int,
    form: TaskForm,
    repository: SQLDashboardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    repository.update_task(task_id, task_values(form, repository), form.skills)
    return _task_payload(repository, task_id)


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: int, repository: SQLDashboardRepository = Depends(get_repository)) -> Response:
    repository.delete_task(task_id)
    return Response(status_code=204)
