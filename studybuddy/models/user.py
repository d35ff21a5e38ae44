from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from uuid import uuid4

from .task import utc_column, utcnow

if TYPE_CHECKING:
    from .task import Task


class User(SQLModel, table=True):
    """User model for authentication and task ownership.

    Preferences are flattened onto the row: ``timezone`` plus the two
    notification switches.
    """
    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    username: str = Field(unique=True, index=True, min_length=3, max_length=50)
    email: str = Field(unique=True, index=True)
    hashed_password: str
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = Field(default=None, sa_column=utc_column(nullable=True))
    profile_picture: Optional[str] = None

    timezone: str = Field(default="UTC")
    notify_email: bool = Field(default=True)
    notify_task_reminders: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())

    # Relationship to tasks
    tasks: List["Task"] = Relationship(back_populates="user")
