"""
Environment-driven settings for the volunteer dashboard API.
"""

from __future__ import annotations

import os
from typing import Literal, Optional, Tuple

from pydantic import BaseModel


DEFAULT_ORGANIZER_ID = "80816b3d-ca57-4960-b2b4-0109eeedb513"


class DatabaseConfig(BaseModel):
    url: Optional[str] = None
    echo: bool = False
    create_tables: bool = False


class InsightsConfig(BaseModel):
    fallback_enabled: bool = True
    completed_statuses: Tuple[str, ...] = ("completed",)
    top_n: int = 5


class MediaStorageConfig(BaseModel):
    enable: bool = False
    provider: Literal["aliyun_oss", "local_fs", "none"] = "none"
    bucket: Optional[str] = None
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    access_key_secret: Optional[str] = None
    prefix: str = "event_images/"
    local_directory: str = os.path.expanduser("~/.volunteer_dashboard/media")
    public_path: str = "/media"
    max_bytes: int = 5 * 1024 * 1024


class EmailConfig(BaseModel):
    host: str = "smtp.gmail.com"
    port: int = 587
    use_tls: bool = True
    username: Optional[str] = None
    password: Optional[str] = None
    sender_name: str = "Volunteer Events"
    timeout_seconds: int = 10

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username)


class OrganizerConfig(BaseModel):
    """Identity used for chat messages posted from the dashboard."""

    id: str = DEFAULT_ORGANIZER_ID
    name: str = "[Organizer]"
    email: str = "organizer@example.com"


class DashboardSettings(BaseModel):
    database: DatabaseConfig = DatabaseConfig()
    insights: InsightsConfig = InsightsConfig()
    media: MediaStorageConfig = MediaStorageConfig()
    email: EmailConfig = EmailConfig()
    organizer: OrganizerConfig = OrganizerConfig()
    log_level: str = "INFO"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    values = tuple(item.strip() for item in raw.split(",") if item.strip())
    return values or default


def load_settings() -> DashboardSettings:
    cfg = DashboardSettings()

    cfg.database = DatabaseConfig(
        url=os.getenv("DASHBOARD_DATABASE_URL", cfg.database.url),
        echo=_env_bool("DASHBOARD_DATABASE_ECHO", cfg.database.echo),
        create_tables=_env_bool("DASHBOARD_DATABASE_CREATE_TABLES", cfg.database.create_tables),
    )

    cfg.insights = InsightsConfig(
        fallback_enabled=_env_bool("DASHBOARD_INSIGHTS_FALLBACK", cfg.insights.fallback_enabled),
        completed_statuses=_env_list("DASHBOARD_COMPLETED_STATUSES", cfg.insights.completed_statuses),
        top_n=max(1, _env_int("DASHBOARD_TOP_N", cfg.insights.top_n)),
    )

    provider = os.getenv("MEDIA_PROVIDER", cfg.media.provider)
    if provider not in {"aliyun_oss", "local_fs", "none"}:
        provider = "none"
    cfg.media = MediaStorageConfig(
        enable=_env_bool("MEDIA_ENABLE", cfg.media.enable),
        provider=provider,
        bucket=os.getenv("MEDIA_BUCKET", cfg.media.bucket),
        endpoint=os.getenv("MEDIA_ENDPOINT", cfg.media.endpoint),
        access_key_id=os.getenv("MEDIA_ACCESS_KEY_ID", cfg.media.access_key_id),
        access_key_secret=os.getenv("MEDIA_ACCESS_KEY_SECRET", cfg.media.access_key_secret),
        prefix=os.getenv("MEDIA_PREFIX", cfg.media.prefix),
        local_directory=os.getenv("MEDIA_LOCAL_DIRECTORY", cfg.media.local_directory),
        max_bytes=_env_int("MEDIA_MAX_BYTES", cfg.media.max_bytes),
    )

    cfg.email = EmailConfig(
        host=os.getenv("SMTP_HOST", cfg.email.host),
        port=_env_int("SMTP_PORT", cfg.email.port),
        use_tls=_env_bool("SMTP_USE_TLS", cfg.email.use_tls),
        username=os.getenv("EMAIL_USER", cfg.email.username),
        password=os.getenv("EMAIL_APP_PASSWORD", cfg.email.password),
        sender_name=os.getenv("EMAIL_SENDER_NAME", cfg.email.sender_name),
    )

    cfg.organizer = OrganizerConfig(
        id=os.getenv("ORGANIZER_ID", cfg.organizer.id),
        name=os.getenv("ORGANIZER_NAME", cfg.organizer.name),
        email=os.getenv("ORGANIZER_EMAIL", cfg.organizer.email),
    )

    cfg.log_level = os.getenv("DASHBOARD_LOG_LEVEL", cfg.log_level).upper()
    return cfg
