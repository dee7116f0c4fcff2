"""
Process-wide collaborators and the FastAPI dependencies that hand them out.

Everything is built once from the environment at import time. Tests swap
them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException

from .chat import ChatBroadcaster, ChatService
from .configuration import DashboardSettings, load_settings
from .notifications import EmailDispatcher, SMTPMailer
from .repository import SQLDashboardRepository, build_repository
from .service import DashboardService, InsightsService
from .storage import MediaStorage, build_media_storage

settings: DashboardSettings = load_settings()
repository: Optional[SQLDashboardRepository] = build_repository(settings.database)
media_storage: Optional[MediaStorage] = build_media_storage(settings.media)
mailer = SMTPMailer(settings.email)
broadcaster = ChatBroadcaster()


def get_settings() -> DashboardSettings:
    return settings


def get_optional_repository() -> Optional[SQLDashboardRepository]:
    return repository


def get_repository(
    repo: Optional[SQLDashboardRepository] = Depends(get_optional_repository),
) -> SQLDashboardRepository:
    if repo is None:
        raise HTTPException(status_code=503, detail="DASHBOARD_DATABASE_URL is not configured.")
    return repo


def get_media_storage() -> Optional[MediaStorage]:
    return media_storage


def get_mailer() -> SMTPMailer:
    return mailer


def get_broadcaster() -> ChatBroadcaster:
    return broadcaster


def get_dashboard_service(repo: SQLDashboardRepository = Depends(get_repository)) -> DashboardService:
    return DashboardService(repo)


def get_insights_service(
    repo: SQLDashboardRepository = Depends(get_repository),
    cfg: DashboardSettings = Depends(get_settings),
) -> InsightsService:
    return InsightsService(repo, cfg.insights)


def get_chat_service(
    repo: SQLDashboardRepository = Depends(get_repository),
    feed: ChatBroadcaster = Depends(get_broadcaster),
    cfg: DashboardSettings = Depends(get_settings),
) -> ChatService:
    return ChatService(repo, feed, cfg.organizer)


def get_email_dispatcher(
    repo: SQLDashboardRepository = Depends(get_repository),
    smtp: SMTPMailer = Depends(get_mailer),
) -> EmailDispatcher:
    return EmailDispatcher(smtp, repo)
