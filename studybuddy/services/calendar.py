"""Calendar and day views over already status-normalized tasks."""
from collections import defaultdict
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Tuple

from ..models import Task, TaskStatus

RED = "red"
YELLOW = "yellow"
GREEN = "green"


def color_for(statuses: Iterable[TaskStatus]) -> str:
    """Worst status wins: missed, then pending, then completed."""
    statuses = set(statuses)
    if TaskStatus.MISSED in statuses:
        return RED
    if TaskStatus.PENDING in statuses:
        return YELLOW
    return GREEN


def date_key(moment: datetime) -> str:
    # Stored timestamps are naive UTC, so the date component is the UTC date
    return moment.date().isoformat()


def group_by_day(tasks: Iterable[Task]) -> Dict[str, List[TaskStatus]]:
    days: Dict[str, List[TaskStatus]] = defaultdict(list)
    for task in tasks:
        days[date_key(task.scheduled_for)].append(task.status)
    return dict(days)


def day_status_map(tasks: Iterable[Task]) -> Dict[str, str]:
    """Map ``YYYY-MM-DD`` to a severity colour. Days without tasks are absent."""
    return {day: color_for(statuses) for day, statuses in group_by_day(tasks).items()}


def day_window(day: date) -> Tuple[datetime, datetime]:
    """Inclusive ``[00:00:00.000, 23:59:59.999]`` UTC bounds of ``day``."""
    start = datetime.combine(day, time.min)
    end = datetime.combine(day, time(23, 59, 59, 999000))
    return start, end
