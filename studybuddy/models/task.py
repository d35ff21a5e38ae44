from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, DateTime, Index
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING
from uuid import uuid4
import enum

if TYPE_CHECKING:
    from .user import User


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form every timestamp is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_column(nullable: bool = False) -> Column:
    """Plain ``DATETIME`` column holding naive UTC values."""
    return Column(DateTime(timezone=False), nullable=nullable)


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    MISSED = "missed"


class Task(SQLModel, table=True):
    """A scheduled unit of work owned by exactly one user."""
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_scheduled_for", "user_id", "scheduled_for"),
        Index("ix_tasks_user_status", "user_id", "status"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", nullable=False)
    title: str
    description: Optional[str] = None
    scheduled_for: datetime = Field(sa_column=utc_column())
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    completed_at: Optional[datetime] = Field(default=None, sa_column=utc_column(nullable=True))
    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())

    # Relationship back to user
    user: Optional["User"] = Relationship(back_populates="tasks")
