from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_dashboard_service, get_insights_service
from ..service import DashboardService, InsightsService

router = APIRouter(tags=["insights"])


class InsightsResponse(BaseModel):
    data: Dict[str, Any]
    source: str


@router.get("/dashboard/stats")
def dashboard_stats(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    return service.dashboard_stats().as_dict()


@router.get("/insights/events", response_model=InsightsResponse)
def event_insights(service: InsightsService = Depends(get_insights_service)) -> InsightsResponse:
    return InsightsResponse(**service.event_insights().as_dict())


@router.get("/insights/volunteers", response_model=InsightsResponse)
def volunteer_insights(service: InsightsService = Depends(get_insights_service)) -> InsightsResponse:
    return InsightsResponse(**service.volunteer_insights().as_dict())


@router.get("/insights/tasks", response_model=InsightsResponse)
def task_insights(service: InsightsService = Depends(get_insights_service)) -> InsightsResponse:
    return InsightsResponse(**service.task_insights().as_dict())


@router.get("/insights/feedback", response_model=InsightsResponse)
def feedback_insights(service: InsightsService = Depends(get_insights_service)) -> InsightsResponse:
    return InsightsResponse(**service.feedback_insights().as_dict())
