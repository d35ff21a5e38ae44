from pydantic import BaseModel, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
import re

from .task import utc_isoformat

EMAIL_REGEX = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")


def _clean_identifier(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: str
    password: str = Field(min_length=6)

    @field_validator("username", "email", mode="before")
    @classmethod
    def _normalize(cls, v):
        return _clean_identifier(v)

    @field_validator("email")
    @classmethod
    def _valid_email(cls, v: str) -> str:
        if not EMAIL_REGEX.match(v):
            raise ValueError("Please enter a valid email")
        return v


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize(cls, v):
        return _clean_identifier(v)


class PreferencesUpdate(BaseModel):
    timezone: Optional[str] = None
    notify_email: Optional[bool] = None
    notify_task_reminders: Optional[bool] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class User(BaseModel):
    """Public user representation; the password hash is never part of it."""
    id: str
    username: str
    email: str
    is_active: bool
    last_login: Optional[datetime] = None
    profile_picture: Optional[str] = None
    timezone: str
    notify_email: bool
    notify_task_reminders: bool
    created_at: datetime
    updated_at: datetime

    @field_serializer("last_login", "created_at", "updated_at", when_used="json-unless-none")
    def _serialize_timestamp(self, value: datetime) -> str:
        return utc_isoformat(value)

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class TaskStats(BaseModel):
    pending: int = 0
    completed: int = 0
    missed: int = 0
    total: int = 0
