"""Deletion of tasks past the retention window."""
from datetime import datetime, timedelta
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import TASK_RETENTION_DAYS
from ..models import utcnow
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def retention_cutoff(now: Optional[datetime] = None, days: int = TASK_RETENTION_DAYS) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def sweep_expired_tasks(db: Session, user_id: str, now: Optional[datetime] = None) -> int:
    """Delete one user's tasks scheduled before the retention cutoff.

    Best effort: a failing delete is logged and rolled back, and the caller
    carries on as if nothing was removed.
    """
    if not user_id:
        return 0
    try:
        deleted = TaskStore(db).delete_older_than(retention_cutoff(now), user_id=user_id)
    except SQLAlchemyError:
        logger.warning("Retention sweep failed for user %s", user_id, exc_info=True)
        db.rollback()
        return 0

    if deleted:
        logger.info("%d old tasks deleted for user %s", deleted, user_id)
    return deleted


def purge_expired_tasks(db: Session, now: Optional[datetime] = None) -> int:
    """Maintenance sweep across every user. Errors propagate to the caller."""
    deleted = TaskStore(db).delete_older_than(retention_cutoff(now))
    logger.info("Purged %d tasks older than %d days", deleted, TASK_RETENTION_DAYS)
    return deleted
