from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .dataset import as_utc

# Absolute URLs with these schemes must name a host.
HOST_SCHEMES = {"http", "https", "ftp", "ws", "wss"}

TaskStatus = Literal["unassigned", "assigned", "inprogress", "complete", "to do", "doing", "done"]


class EventForm(BaseModel):
    title: str = Field(min_length=2)
    location: str = Field(min_length=2)
    location_type: Literal["virtual", "physical"]
    description: Optional[str] = None
    thumbnail_image: Optional[str] = None
    event_category: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime
    registration_deadline: Optional[datetime] = None
    max_volunteers: int = Field(default=25, gt=0)
    status: Literal["draft", "published", "archived"]

    @field_validator("thumbnail_image")
    @classmethod
    def _check_thumbnail(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        # Local media storage hands out root-relative paths.
        if value.startswith("/") and not value.startswith("//"):
            return value
        parsed = urlparse(value)
        if not parsed.scheme or (parsed.scheme in HOST_SCHEMES and not parsed.netloc):
            raise ValueError("Thumbnail must be a valid URL")
        return value

    @model_validator(mode="after")
    def _check_dates(self) -> "EventForm":
        if as_utc(self.end_date) < as_utc(self.start_date):
            raise ValueError("End date must be after start date")
        return self

    def to_values(self) -> Dict[str, Any]:
        values = self.model_dump()
        for key in ("start_date", "end_date", "registration_deadline"):
            if values[key] is not None:
                values[key] = as_utc(values[key])
        return values


class TaskForm(BaseModel):
    """
    Task create/update payload.

    Both status vocabularies in use by the dashboard are accepted.
    ``skills`` replaces the task's skill tags when given; ``None`` leaves them
    untouched on update.
    """

    task_description: str = Field(min_length=2)
    task_status: TaskStatus = "unassigned"
    assign_volunteer: bool = False
    volunteer_id: Optional[str] = None
    volunteer_email: Optional[EmailStr] = None
    task_feedback: Optional[str] = None
    skills: Optional[List[int]] = None

    @field_validator("volunteer_email", mode="before")
    @classmethod
    def _blank_email(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_assignment(self) -> "TaskForm":
        if self.assign_volunteer and not (self.volunteer_id or self.volunteer_email):
            raise ValueError("Select a volunteer to assign")
        return self


class ChatMessageCreate(BaseModel):
    message: str
    volunteer_id: Optional[str] = None
    volunteer_name: Optional[str] = None
    volunteer_email: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value


class EmailRecipient(BaseModel):
    email: str


class EmailDispatchRequest(BaseModel):
    """Body of the event announcement endpoint; completeness is checked by the route."""

    volunteers: Optional[List[EmailRecipient]] = None
    subject: Optional[str] = None
    html_content: Optional[str] = Field(default=None, alias="htmlContent")
    event_id: Optional[int] = Field(default=None, alias="eventId")

    model_config = {"populate_by_name": True}

    def is_complete(self) -> bool:
        return self.volunteers is not None and bool(self.subject) and bool(self.html_content) and bool(self.event_id)


class EmailResult(BaseModel):
    success: bool
    email: str
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
