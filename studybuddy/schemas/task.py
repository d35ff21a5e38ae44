from pydantic import BaseModel, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Optional

from ..models import TaskStatus


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored naive in UTC, to the second; aware input is converted first.

    Whole seconds are what the edit form can show and send back, so an
    untouched time survives a save unchanged.
    """
    if value is None:
        return value
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0)


def utc_isoformat(value: datetime) -> str:
    """ISO 8601 with a ``Z`` suffix, so clients never read it as local time."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def _blank_to_none(value):
    # HTML forms submit empty strings for untouched fields
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TaskBase(BaseModel):
    """Fields shared by task payloads; accepts camelCase or snake_case keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class TaskCreate(TaskBase):
    """Schema for creating new tasks."""
    title: str
    description: Optional[str] = None
    scheduled_for: datetime

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _trim_description(cls, v):
        v = _blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("scheduled_for")
    @classmethod
    def _normalize_scheduled_for(cls, v: datetime) -> datetime:
        return _to_naive_utc(v)


class TaskUpdate(TaskBase):
    """Schema for a full edit. Omitted fields keep their stored value."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    scheduled_for: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title is required")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _trim_description(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("status", "scheduled_for", mode="before")
    @classmethod
    def _blank_fields(cls, v):
        return _blank_to_none(v)

    @field_validator("scheduled_for")
    @classmethod
    def _normalize_scheduled_for(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(v)


class TaskStatusUpdate(TaskBase):
    """Schema for the direct status override."""
    status: TaskStatus


class TaskRead(TaskBase):
    """Task representation returned to clients."""
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    scheduled_for: datetime
    status: TaskStatus
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_serializer("scheduled_for", "completed_at", "created_at", "updated_at", when_used="json-unless-none")
    def _serialize_timestamp(self, value: datetime) -> str:
        return utc_isoformat(value)

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True
