"""Task persistence with owner scoping."""
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from ..errors import NotFoundFailure
from ..models import Task, TaskStatus, utcnow
from .status import apply_completion, derive_status, is_overdue

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found"


class TaskStore:
    """Service class for task CRUD scoped to a single owner per call."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: str,
        title: str,
        scheduled_for: datetime,
        description: Optional[str] = None,
    ) -> Task:
        task = Task(
            user_id=user_id,
            title=title,
            description=description,
            scheduled_for=scheduled_for,
            status=TaskStatus.PENDING,
            completed_at=None,
        )
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        logger.debug("Created task %s for user %s", task.id, user_id)
        return task

    def list_by_owner(self, user_id: str, ordered: bool = True) -> List[Task]:
        query = self.session.query(Task).filter(Task.user_id == user_id)
        if ordered:
            query = query.order_by(Task.scheduled_for.asc())
        return query.all()

    def list_in_range(self, user_id: str, start: datetime, end: datetime) -> List[Task]:
        """Tasks with ``start <= scheduled_for <= end``, earliest first."""
        return (
            self.session.query(Task)
            .filter(Task.user_id == user_id)
            .filter(Task.scheduled_for >= start, Task.scheduled_for <= end)
            .order_by(Task.scheduled_for.asc())
            .all()
        )

    def get(self, task_id: str, user_id: str) -> Optional[Task]:
        return self.session.query(Task).filter(Task.id == task_id, Task.user_id == user_id).first()

    def _get_owned(self, task_id: str, user_id: str) -> Task:
        task = self.get(task_id, user_id)
        if task is None:
            raise NotFoundFailure(TASK_NOT_FOUND)
        return task

    def update(
        self,
        task_id: str,
        user_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        scheduled_for: Optional[datetime] = None,
    ) -> Task:
        """Full edit. The submitted status is re-derived against the
        (possibly new) scheduled time, so a past task cannot be put back
        to pending."""
        task = self._get_owned(task_id, user_id)
        now = utcnow()

        if title is not None:
            task.title = title
        if description is not None:
            task.description = description or None
        if scheduled_for is not None:
            task.scheduled_for = scheduled_for

        task.status = derive_status(task.scheduled_for, status or task.status, now)
        apply_completion(task, now)
        task.updated_at = now

        self.session.commit()
        self.session.refresh(task)
        return task

    def update_status(self, task_id: str, user_id: str, status: TaskStatus) -> Task:
        """Direct override, no derivation."""
        task = self._get_owned(task_id, user_id)
        now = utcnow()
        task.status = status
        apply_completion(task, now)
        task.updated_at = now

        self.session.commit()
        self.session.refresh(task)
        return task

    def delete(self, task_id: str, user_id: str) -> None:
        task = self._get_owned(task_id, user_id)
        self.session.delete(task)
        self.session.commit()

    def delete_older_than(self, cutoff: datetime, user_id: Optional[str] = None) -> int:
        """Bulk delete tasks scheduled strictly before ``cutoff``."""
        query = self.session.query(Task).filter(Task.scheduled_for < cutoff)
        if user_id is not None:
            query = query.filter(Task.user_id == user_id)
        deleted = query.delete(synchronize_session=False)
        self.session.commit()
        return deleted

    def mark_missed(self, tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Task]:
        """Persist ``missed`` for every pending task whose time has passed."""
        now = now or utcnow()
        tasks = list(tasks)
        changed = False
        for task in tasks:
            if is_overdue(task, now):
                task.status = derive_status(task.scheduled_for, task.status, now)
                task.updated_at = now
                changed = True
        if changed:
            self.session.commit()
        return tasks

    def count_by_status(self, user_id: str) -> Dict[str, int]:
        counts = Counter(task.status.value for task in self.list_by_owner(user_id, ordered=False))
        stats = {s.value: counts.get(s.value, 0) for s in TaskStatus}
        stats["total"] = sum(counts.values())
        return stats
