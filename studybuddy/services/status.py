"""Status rules for tasks.

Both rules are plain functions called by the task store at the points
where they apply; nothing here is wired into ORM events.
"""
from datetime import datetime
from typing import Optional

from ..models import Task, TaskStatus, utcnow


def derive_status(
    scheduled_for: datetime,
    current_status: Optional[TaskStatus],
    now: Optional[datetime] = None,
) -> TaskStatus:
    """Effective status of a task scheduled at ``scheduled_for``.

    Completion is sticky. Anything else is ``missed`` once its time has
    passed and ``pending`` before that.
    """
    if current_status == TaskStatus.COMPLETED:
        return TaskStatus.COMPLETED
    now = now or utcnow()
    if scheduled_for < now:
        return TaskStatus.MISSED
    return TaskStatus.PENDING


def apply_completion(task: Task, now: Optional[datetime] = None) -> Task:
    """Keep ``completed_at`` set exactly when the task is completed."""
    if task.status == TaskStatus.COMPLETED:
        if task.completed_at is None:
            task.completed_at = now or utcnow()
    else:
        task.completed_at = None
    return task


def is_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    return task.status == TaskStatus.PENDING and task.scheduled_for < (now or utcnow())
